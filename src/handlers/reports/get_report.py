import logging
import os
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo
from boto3 import resource

from carbooking.repository.booking_repo import BookingRepository
from carbooking.services.report_service import ReportService
from carbooking.models.users import ActorRole
from carbooking.utils.constants import DEFAULT_REGION, DEFAULT_REPORT_TIMEZONE
from carbooking.utils.custom_response import send_custom_response
from carbooking.utils.request_context import get_actor

logger = logging.getLogger()
logger.setLevel(logging.INFO)

TABLE_NAME = os.environ.get("TABLE_NAME")
REGION = os.environ.get("AWS_REGION", DEFAULT_REGION)
REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", DEFAULT_REPORT_TIMEZONE)

dynamodb = resource("dynamodb", region_name=REGION)
table = dynamodb.Table(TABLE_NAME)

report_service = ReportService(booking_repo=BookingRepository(table))


def _local_midnight(value: str) -> datetime:
    return datetime.combine(date.fromisoformat(value), time.min, tzinfo=ZoneInfo(REPORT_TIMEZONE))


def get_report(event, context):
    actor = get_actor(event)
    if actor is None:
        return send_custom_response(401, "Unauthorized")
    if actor.role != ActorRole.ADMIN:
        return send_custom_response(403, "Only admins can view reports")

    params = event.get("queryStringParameters") or {}
    start_raw = params.get("from")
    end_raw = params.get("to")
    if not start_raw or not end_raw:
        return send_custom_response(400, "from and to dates are required (YYYY-MM-DD)")

    try:
        start = _local_midnight(start_raw)
        end = _local_midnight(end_raw) + timedelta(days=1)
    except ValueError:
        return send_custom_response(400, "Dates must be in YYYY-MM-DD format")

    if end <= start:
        return send_custom_response(400, "to must not be before from")

    try:
        report = report_service.summarize(start, end)
        return send_custom_response(
            200,
            "Report generated successfully",
            {
                "from": start_raw,
                "to": end_raw,
                "total_bookings": report.total_bookings,
                "paid_revenue": report.paid_revenue,
                "outstanding_amount": report.outstanding_amount,
                "jobs_per_driver": report.jobs_per_driver,
                "pickup_counts": report.pickup_counts,
            },
        )
    except Exception:
        logger.exception("Unhandled error generating report")
        return send_custom_response(500, "Internal server error")
