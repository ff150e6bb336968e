import unittest
from unittest.mock import MagicMock
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo
from botocore.exceptions import ClientError

from booking_factory import make_booking
from carbooking.models.bookings import BookingStatus, PaymentStatus
from carbooking.models.reports import ReportSettings
from carbooking.services.report_service import ReportService

BANGKOK = ZoneInfo("Asia/Bangkok")


class TestReportSummary(unittest.TestCase):

    def setUp(self):
        self.booking_repo = MagicMock()
        self.service = ReportService(self.booking_repo)
        self.start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.end = self.start + timedelta(days=1)

    def test_summarize(self):
        paid = make_booking(booking_id="b1", driver_id="d1")
        paid.payment_info.payment_status = PaymentStatus.PAID
        invoiced = make_booking(booking_id="b2", driver_id="d1", rental_hours=3)
        invoiced.payment_info.payment_status = PaymentStatus.INVOICED
        unpaid = make_booking(booking_id="b3", status=BookingStatus.CANCELLED)
        self.booking_repo.get_bookings_created_between.return_value = [paid, invoiced, unpaid]

        report = self.service.summarize(self.start, self.end)

        self.assertEqual(report.total_bookings, 3)
        self.assertEqual(report.paid_revenue, 1000.0)
        self.assertEqual(report.outstanding_amount, 2500.0)
        self.assertEqual(report.jobs_per_driver, {"d1": 2})
        self.assertEqual(report.pickup_counts, {"Airport": 3})
        self.booking_repo.get_bookings_created_between.assert_called_once_with(self.start, self.end)

    def test_summarize_fails_soft(self):
        self.booking_repo.get_bookings_created_between.side_effect = ClientError(
            error_response={"Error": {"Message": "Query failed"}},
            operation_name="Query",
        )

        report = self.service.summarize(self.start, self.end)

        self.assertEqual(report.total_bookings, 0)
        self.assertEqual(report.paid_revenue, 0.0)
        self.assertEqual(report.jobs_per_driver, {})


class TestDailyReport(unittest.TestCase):

    def setUp(self):
        self.booking_repo = MagicMock()
        self.booking_repo.get_bookings_created_between.return_value = []
        self.settings_repo = MagicMock()
        self.settings_repo.get_report_settings.return_value = ReportSettings(
            report_hour=8, recipients=["Uadmin1", "Uadmin2"], last_report_sent_date="2024-01-01"
        )
        self.notifier = MagicMock()
        self.notifier.send_to_user.return_value = True
        self.service = ReportService(self.booking_repo, self.settings_repo, self.notifier)
        self.now = datetime(2024, 1, 2, 8, 5, tzinfo=BANGKOK)

    def test_sends_once_at_scheduled_hour(self):
        outcome = self.service.send_daily_report(self.now)

        self.assertEqual(outcome, "report sent to 2 recipients")
        self.assertEqual(self.notifier.send_to_user.call_count, 2)
        self.settings_repo.mark_report_sent.assert_called_once_with("2024-01-02")

        start, end = self.booking_repo.get_bookings_created_between.call_args[0]
        self.assertEqual(start, datetime(2024, 1, 2, tzinfo=BANGKOK))
        self.assertEqual(end - start, timedelta(days=1))

    def test_skips_outside_scheduled_hour(self):
        outcome = self.service.send_daily_report(self.now.replace(hour=9))

        self.assertIn("scheduled for 8", outcome)
        self.notifier.send_to_user.assert_not_called()
        self.settings_repo.mark_report_sent.assert_not_called()

    def test_skips_when_already_sent_today(self):
        self.settings_repo.get_report_settings.return_value.last_report_sent_date = "2024-01-02"

        outcome = self.service.send_daily_report(self.now)

        self.assertEqual(outcome, "report for 2024-01-02 already sent")
        self.notifier.send_to_user.assert_not_called()

    def test_skips_without_settings(self):
        self.settings_repo.get_report_settings.return_value = None

        outcome = self.service.send_daily_report(self.now)

        self.assertEqual(outcome, "notification settings not configured")

    def test_skips_without_recipients(self):
        self.settings_repo.get_report_settings.return_value.recipients = []

        outcome = self.service.send_daily_report(self.now)

        self.assertEqual(outcome, "no report recipients configured")
        self.booking_repo.get_bookings_created_between.assert_not_called()

    def test_not_marked_sent_when_nothing_delivered(self):
        self.notifier.send_to_user.return_value = False

        outcome = self.service.send_daily_report(self.now)

        self.assertEqual(outcome, "report could not be sent")
        self.settings_repo.mark_report_sent.assert_not_called()


if __name__ == "__main__":
    unittest.main()
