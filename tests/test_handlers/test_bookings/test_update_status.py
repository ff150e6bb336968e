import importlib
import json
import os
import unittest
from unittest.mock import MagicMock, patch

from carbooking.models.results import OperationResult
from carbooking.models.users import Actor, ActorRole
from carbooking.utils.custom_exceptions import (
    InvalidRequest,
    InvalidTransition,
    NotFoundException,
    PermissionDenied,
)


class UpdateStatusTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(
            os.environ,
            {"TABLE_NAME": "test-table", "AWS_REGION": "ap-southeast-1"},
            clear=False,
        )
        cls.env.start()
        cls.resource = patch("handlers.bookings.update_status.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import handlers.bookings.update_status as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop()
        cls.env.stop()

    def setUp(self):
        self.p_update = patch.object(self.mod.lifecycle_service, "update_status")
        self.mock_update = self.p_update.start()
        self.mock_update.return_value = OperationResult(booking_id="b1")

    def tearDown(self):
        self.p_update.stop()

    def _event(self, body=None, booking_id="b1", user_id="d1", role="driver"):
        return {
            "body": json.dumps(body) if body is not None else None,
            "pathParameters": {"booking_id": booking_id} if booking_id else None,
            "requestContext": {"authorizer": {"user_id": user_id, "role": role} if user_id else {}},
        }

    def test_unauthenticated_returns_401(self):
        resp = self.mod.update_status(self._event({"status": "stb"}, user_id=None), None)
        self.assertEqual(401, resp["statusCode"])

    def test_missing_booking_id_returns_400(self):
        resp = self.mod.update_status(self._event({"status": "stb"}, booking_id=None), None)
        self.assertEqual(400, resp["statusCode"])

    def test_missing_status_returns_400(self):
        resp = self.mod.update_status(self._event({}), None)
        self.assertEqual(400, resp["statusCode"])
        self.mock_update.assert_not_called()

    def test_success(self):
        resp = self.mod.update_status(self._event({"status": "stb", "note": "outside"}), None)

        self.assertEqual(200, resp["statusCode"])
        self.mock_update.assert_called_once_with(
            booking_id="b1",
            actor=Actor("d1", ActorRole.DRIVER),
            new_status="stb",
            note="outside",
        )

    def test_error_kinds_map_to_status_codes(self):
        cases = [
            (InvalidRequest("Invalid status"), 400, "validation_error"),
            (PermissionDenied("nope"), 403, "permission_denied"),
            (NotFoundException("booking", "b1"), 404, "not_found"),
            (InvalidTransition("cannot"), 409, "invalid_state"),
        ]
        for err, status, kind in cases:
            with self.subTest(kind=kind):
                self.mock_update.side_effect = err

                resp = self.mod.update_status(self._event({"status": "stb"}), None)

                self.assertEqual(status, resp["statusCode"])
                self.assertEqual(json.loads(resp["body"])["data"], {"error": kind})

    def test_unexpected_error_returns_500(self):
        self.mock_update.side_effect = RuntimeError("boom")

        resp = self.mod.update_status(self._event({"status": "stb"}), None)

        self.assertEqual(500, resp["statusCode"])


if __name__ == "__main__":
    unittest.main()
