import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch

from carbooking.models.results import OperationResult
from carbooking.utils.custom_exceptions import AlreadyReviewed, BookingNotCompleted, MissingCustomerIdentity


class RequestReviewTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(
            os.environ,
            {"TABLE_NAME": "test-table", "AWS_REGION": "ap-southeast-1"},
            clear=False,
        )
        cls.env.start()
        cls.resource = patch("handlers.reviews.request_review.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import handlers.reviews.request_review as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_review = patch.object(self.mod.review_service, "request_review")
        self.mock_review = self.p_review.start()
        self.mock_review.return_value = OperationResult(booking_id="b1")

    def tearDown(self):
        self.p_review.stop()

    def _event(self, role="admin"):
        return {
            "pathParameters": {"booking_id": "b1"},
            "requestContext": {"authorizer": {"user_id": "a1", "role": role}},
        }

    def test_success(self):
        resp = self.mod.request_review(self._event(), None)
        self.assertEqual(200, resp["statusCode"])

    def test_rejections_carry_distinct_kinds(self):
        cases = [
            (BookingNotCompleted(), 409, "not_completed"),
            (AlreadyReviewed(), 409, "already_reviewed"),
            (MissingCustomerIdentity(), 422, "missing_identity"),
        ]
        for err, status, kind in cases:
            with self.subTest(kind=kind):
                self.mock_review.side_effect = err

                resp = self.mod.request_review(self._event(), None)

                self.assertEqual(status, resp["statusCode"])
                self.assertEqual(json.loads(resp["body"])["data"], {"error": kind})

    def test_requires_admin(self):
        resp = self.mod.request_review(self._event(role="customer"), None)

        self.assertEqual(403, resp["statusCode"])
        self.mock_review.assert_not_called()


if __name__ == "__main__":
    unittest.main()
