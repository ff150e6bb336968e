import logging
from collections import Counter
from datetime import datetime, time, timedelta
from typing import Optional
from carbooking.models.bookings import PaymentStatus
from carbooking.models.reports import BookingReport
from carbooking.repository.booking_repo import BookingRepository
from carbooking.repository.settings_repo import SettingsRepository
from carbooking.services import messages
from carbooking.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

OUTSTANDING_STATUSES = {PaymentStatus.UNPAID, PaymentStatus.INVOICED}


class ReportService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        settings_repo: Optional[SettingsRepository] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.booking_repo = booking_repo
        self.settings_repo = settings_repo
        self.notifier = notifier

    def summarize(self, start: datetime, end: datetime) -> BookingReport:
        """Summary of bookings created in ``[start, end)``; empty if the store is unreachable."""
        report = BookingReport(start=start, end=end)
        try:
            bookings = self.booking_repo.get_bookings_created_between(start, end)
        except Exception:
            logger.exception(f"Could not load bookings between {start} and {end}")
            return report

        pickups = Counter()
        drivers = Counter()
        for booking in bookings:
            payment = booking.payment_info
            if payment.payment_status == PaymentStatus.PAID:
                report.paid_revenue += payment.total_price
            elif payment.payment_status in OUTSTANDING_STATUSES:
                report.outstanding_amount += payment.total_price
            if booking.driver_id:
                drivers[booking.driver_id] += 1
            pickups[booking.pickup.display_name] += 1

        report.total_bookings = len(bookings)
        report.jobs_per_driver = dict(drivers)
        report.pickup_counts = dict(pickups)
        return report

    def send_daily_report(self, now: datetime) -> str:
        """Send today's report once, at the configured local hour.

        ``now`` must be expressed in the reporting timezone. Returns a short
        description of what happened, for the scheduler's logs.
        """
        settings = self.settings_repo.get_report_settings()
        if settings is None:
            return "notification settings not configured"

        if now.hour != settings.report_hour:
            return f"current hour {now.hour}, scheduled for {settings.report_hour}"

        today = now.date().isoformat()
        if settings.last_report_sent_date == today:
            return f"report for {today} already sent"

        if not settings.recipients:
            return "no report recipients configured"

        day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        report = self.summarize(day_start, day_start + timedelta(days=1))
        text = messages.daily_report(report)

        delivered = sum(
            1 for recipient in settings.recipients if self.notifier.send_to_user(recipient, text)
        )
        if delivered == 0:
            logger.warning(f"Daily report for {today} could not be queued for any recipient")
            return "report could not be sent"

        self.settings_repo.mark_report_sent(today)
        logger.info(f"Daily report for {today} queued for {delivered} recipients")
        return f"report sent to {delivered} recipients"
