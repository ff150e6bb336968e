import json
import logging
import os

from carbooking.services.delivery_service import MessageDelivery

logger = logging.getLogger()
logger.setLevel(logging.INFO)

LINE_CHANNEL_ACCESS_TOKEN = os.environ.get("LINE_CHANNEL_ACCESS_TOKEN")
TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN")
TELEGRAM_ADMIN_CHAT_ID = os.environ.get("TELEGRAM_ADMIN_CHAT_ID")

delivery = MessageDelivery(
    line_token=LINE_CHANNEL_ACCESS_TOKEN,
    telegram_token=TELEGRAM_BOT_TOKEN,
    admin_chat_id=TELEGRAM_ADMIN_CHAT_ID,
)


def deliver(event, context):
    """SQS consumer. Failed records are reported back so only they are retried."""
    failures = []
    for record in event.get("Records", []):
        message_id = record.get("messageId")
        try:
            delivery.deliver(json.loads(record["body"]))
        except Exception:
            logger.exception(f"Delivery of notification {message_id} failed")
            failures.append({"itemIdentifier": message_id})

    return {"batchItemFailures": failures}
