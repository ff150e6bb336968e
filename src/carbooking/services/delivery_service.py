import httpx
import logging
from typing import Optional
from carbooking.services.notification_service import LINE_CHANNEL, TELEGRAM_CHANNEL

logger = logging.getLogger(__name__)

LINE_PUSH_URL = "https://api.line.me/v2/bot/message/push"
TELEGRAM_API_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT = 5.0


class DeliveryError(Exception):
    pass


class MessageDelivery:
    """Sends queued notifications to LINE users and the Telegram admin chat."""

    def __init__(
        self,
        line_token: Optional[str],
        telegram_token: Optional[str],
        admin_chat_id: Optional[str],
        http: Optional[httpx.Client] = None,
    ):
        self.line_token = line_token
        self.telegram_token = telegram_token
        self.admin_chat_id = admin_chat_id
        self.http = http if http else httpx.Client(timeout=DEFAULT_TIMEOUT)

    def deliver(self, message: dict):
        channel = message.get("channel")
        text = message.get("text")
        if not text:
            raise DeliveryError("message has no text")

        if channel == LINE_CHANNEL:
            self._push_line(message.get("recipient"), text)
        elif channel == TELEGRAM_CHANNEL:
            self._send_telegram(text)
        else:
            raise DeliveryError(f"unknown channel {channel!r}")

    def _push_line(self, recipient: Optional[str], text: str):
        if not self.line_token:
            raise DeliveryError("LINE_CHANNEL_ACCESS_TOKEN is not set")
        if not recipient:
            raise DeliveryError("LINE message has no recipient")

        resp = self.http.post(
            LINE_PUSH_URL,
            headers={"Authorization": f"Bearer {self.line_token}"},
            json={"to": recipient, "messages": [{"type": "text", "text": text}]},
        )
        resp.raise_for_status()

    def _send_telegram(self, text: str):
        if not self.telegram_token or not self.admin_chat_id:
            raise DeliveryError("Telegram bot token or admin chat id is not set")

        resp = self.http.post(
            f"{TELEGRAM_API_URL}/bot{self.telegram_token}/sendMessage",
            json={"chat_id": self.admin_chat_id, "text": text, "parse_mode": "Markdown"},
        )
        resp.raise_for_status()
