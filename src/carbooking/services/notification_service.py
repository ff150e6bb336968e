import boto3
import json
import logging
from typing import Optional

logger = logging.getLogger(__name__)

LINE_CHANNEL = "line"
TELEGRAM_CHANNEL = "telegram"


class NotificationDispatcher:
    """Queues outbound messages for the delivery worker.

    Every send is fire-and-forget: failures are logged and reported as
    ``False`` so callers can attach a warning, never raised.
    """

    def __init__(self, queue_url: Optional[str], region: Optional[str] = None):
        self.queue_url = queue_url
        self.sqs = boto3.client("sqs", region_name=region)

    def send_to_user(self, identity: Optional[str], text: str) -> bool:
        if not identity:
            logger.warning("Skipping user notification without recipient identity")
            return False
        return self._enqueue(LINE_CHANNEL, identity, text)

    def send_to_admin_channel(self, text: str) -> bool:
        return self._enqueue(TELEGRAM_CHANNEL, None, text)

    def _enqueue(self, channel: str, recipient: Optional[str], text: str) -> bool:
        if not self.queue_url:
            logger.warning(f"NOTIFICATION_QUEUE_URL not set, dropping {channel} message")
            return False

        payload = {"channel": channel, "recipient": recipient, "text": text}
        try:
            self.sqs.send_message(QueueUrl=self.queue_url, MessageBody=json.dumps(payload))
        except Exception:
            logger.exception(f"Failed to enqueue {channel} notification for {recipient}")
            return False
        return True
