import logging
import os
from datetime import datetime
from zoneinfo import ZoneInfo
from boto3 import resource

from carbooking.repository.booking_repo import BookingRepository
from carbooking.repository.settings_repo import SettingsRepository
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.services.report_service import ReportService
from carbooking.utils.constants import DEFAULT_REGION, DEFAULT_REPORT_TIMEZONE

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
REGION = os.environ.get("AWS_REGION", DEFAULT_REGION)
NOTIFICATION_QUEUE_URL = os.environ.get("NOTIFICATION_QUEUE_URL")
REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", DEFAULT_REPORT_TIMEZONE)

dynamodb = resource("dynamodb", region_name=REGION)
table = dynamodb.Table(TABLE_NAME)

report_service = ReportService(
    booking_repo=BookingRepository(table),
    settings_repo=SettingsRepository(table),
    notifier=NotificationDispatcher(NOTIFICATION_QUEUE_URL, region=REGION),
)


def send_report(event, context):
    try:
        now = datetime.now(ZoneInfo(REPORT_TIMEZONE))
        outcome = report_service.send_daily_report(now)
        logger.info(f"Daily report: {outcome}")
        return {"success": True, "message": outcome}
    except Exception as err:
        logger.exception("Daily report failed")
        return {"success": False, "error": str(err)}
