import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from carbooking.models.reports import BookingReport

ENV = {"TABLE_NAME": "test-table", "AWS_REGION": "ap-southeast-1", "REPORT_TIMEZONE": "Asia/Bangkok"}
BANGKOK = ZoneInfo("Asia/Bangkok")


def load(module_name):
    resource = patch(f"handlers.reports.{module_name}.resource")
    mock_res = resource.start()
    mock_res.return_value.Table.return_value = MagicMock()
    mod = importlib.reload(importlib.import_module(f"handlers.reports.{module_name}"))
    return resource, mod


class SendReportTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, ENV, clear=False)
        cls.env.start()
        cls.resource, cls.mod = load("send_report")

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def test_success(self):
        with patch.object(self.mod.report_service, "send_daily_report") as mock_send:
            mock_send.return_value = "report sent to 2 recipients"

            result = self.mod.send_report({}, None)

        self.assertEqual(result, {"success": True, "message": "report sent to 2 recipients"})
        now = mock_send.call_args[0][0]
        self.assertEqual(now.utcoffset(), timedelta(hours=7))

    def test_failure_is_reported(self):
        with patch.object(self.mod.report_service, "send_daily_report") as mock_send:
            mock_send.side_effect = RuntimeError("settings unreadable")

            result = self.mod.send_report({}, None)

        self.assertEqual(result, {"success": False, "error": "settings unreadable"})


class GetReportTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, ENV, clear=False)
        cls.env.start()
        cls.resource, cls.mod = load("get_report")

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_summarize = patch.object(self.mod.report_service, "summarize")
        self.mock_summarize = self.p_summarize.start()

    def tearDown(self):
        self.p_summarize.stop()

    def _event(self, params=None, role="admin"):
        return {
            "queryStringParameters": params,
            "requestContext": {"authorizer": {"user_id": "a1", "role": role}},
        }

    def test_report_covers_whole_local_days(self):
        start = datetime(2024, 1, 1, tzinfo=BANGKOK)
        self.mock_summarize.return_value = BookingReport(
            start=start,
            end=start + timedelta(days=2),
            total_bookings=4,
            paid_revenue=3000.0,
            jobs_per_driver={"d1": 2},
        )

        resp = self.mod.get_report(self._event({"from": "2024-01-01", "to": "2024-01-02"}), None)

        self.assertEqual(200, resp["statusCode"])
        data = json.loads(resp["body"])["data"]
        self.assertEqual(data["total_bookings"], 4)
        self.assertEqual(data["jobs_per_driver"], {"d1": 2})
        self.mock_summarize.assert_called_once_with(start, datetime(2024, 1, 3, tzinfo=BANGKOK))

    def test_missing_dates_returns_400(self):
        resp = self.mod.get_report(self._event({"from": "2024-01-01"}), None)
        self.assertEqual(400, resp["statusCode"])

    def test_bad_date_returns_400(self):
        resp = self.mod.get_report(self._event({"from": "01/01/2024", "to": "2024-01-02"}), None)
        self.assertEqual(400, resp["statusCode"])

    def test_reversed_range_returns_400(self):
        resp = self.mod.get_report(self._event({"from": "2024-01-05", "to": "2024-01-02"}), None)
        self.assertEqual(400, resp["statusCode"])

    def test_requires_admin(self):
        resp = self.mod.get_report(self._event({"from": "2024-01-01", "to": "2024-01-02"}, role="driver"), None)

        self.assertEqual(403, resp["statusCode"])
        self.mock_summarize.assert_not_called()


if __name__ == "__main__":
    unittest.main()
