import unittest
from datetime import datetime, timezone

from pydantic import ValidationError

from booking_factory import booking_request_body
from carbooking.models.bookings import BookingStatus, PaymentStatus
from carbooking.schemas.bookings import BookingRequest


class TestBookingRequest(unittest.TestCase):

    def _request(self, **overrides):
        return BookingRequest.model_validate({**booking_request_body(**overrides), "user_id": "U100"})

    def test_valid_request_normalises_pickup_to_utc(self):
        req = self._request()

        self.assertEqual(
            req.pickup.date_time, datetime(2030, 1, 1, 3, 0, tzinfo=timezone.utc)
        )

    def test_to_booking_computes_total_price(self):
        booking = self._request().to_booking("b1")

        self.assertEqual(booking.booking_id, "b1")
        self.assertEqual(booking.status, BookingStatus.PENDING)
        self.assertEqual(booking.payment_info.total_price, 1500)
        self.assertEqual(booking.payment_info.payment_status, PaymentStatus.UNPAID)
        self.assertEqual(booking.end.hour, 6)

    def test_pickup_name_defaults_to_address(self):
        body = booking_request_body()
        body["pickup"].pop("name")

        req = BookingRequest.model_validate({**body, "user_id": "U100"})

        self.assertEqual(req.pickup.name, "Suvarnabhumi Airport")

    def test_missing_vehicle_rejected(self):
        body = booking_request_body()
        body.pop("vehicle_id")

        with self.assertRaises(ValidationError):
            BookingRequest.model_validate({**body, "user_id": "U100"})

    def test_missing_customer_info_rejected(self):
        body = booking_request_body()
        body.pop("customer_info")

        with self.assertRaises(ValidationError):
            BookingRequest.model_validate({**body, "user_id": "U100"})

    def test_naive_pickup_rejected(self):
        body = booking_request_body()
        body["pickup"]["date_time"] = "2030-01-01T10:00:00"

        with self.assertRaises(ValidationError):
            BookingRequest.model_validate({**body, "user_id": "U100"})

    def test_zero_rental_hours_rejected(self):
        with self.assertRaises(ValidationError):
            self._request(trip_details={"passengers": 1, "bags": 0, "rental_hours": 0})

    def test_negative_rental_hours_rejected(self):
        with self.assertRaises(ValidationError):
            self._request(trip_details={"passengers": 1, "bags": 0, "rental_hours": -2})

    def test_excessive_rental_hours_rejected(self):
        with self.assertRaises(ValidationError):
            self._request(trip_details={"passengers": 1, "bags": 0, "rental_hours": 10000})

    def test_invalid_email_rejected(self):
        with self.assertRaises(ValidationError):
            self._request(customer_info={"name": "A", "phone": "1", "email": "not-an-email"})

    def test_out_of_range_latitude_rejected(self):
        body = booking_request_body()
        body["dropoff"]["location"]["latitude"] = 123

        with self.assertRaises(ValidationError):
            BookingRequest.model_validate({**body, "user_id": "U100"})

    def test_negative_price_rejected(self):
        with self.assertRaises(ValidationError):
            self._request(payment_info={"price_per_hour": -1})

    def test_nan_rental_hours_rejected(self):
        with self.assertRaises(ValidationError):
            self._request(trip_details={"passengers": 1, "bags": 0, "rental_hours": float("nan")})

    def test_infinite_prices_rejected(self):
        for payment_info in (
            {"price_per_hour": float("inf")},
            {"price_per_hour": 500, "overtime_rate": float("inf")},
        ):
            with self.subTest(payment_info=payment_info):
                with self.assertRaises(ValidationError):
                    self._request(payment_info=payment_info)

    def test_nan_coordinate_rejected(self):
        body = booking_request_body()
        body["pickup"]["location"]["longitude"] = float("nan")

        with self.assertRaises(ValidationError):
            BookingRequest.model_validate({**body, "user_id": "U100"})

    def test_total_price_is_exact_decimal_product(self):
        booking = self._request(
            trip_details={"passengers": 1, "bags": 0, "rental_hours": 3},
            payment_info={"price_per_hour": 1.1},
        ).to_booking("b1")

        self.assertEqual(booking.payment_info.total_price, 3.3)
        self.assertEqual(str(booking.payment_info.total_price), "3.3")


if __name__ == "__main__":
    unittest.main()
