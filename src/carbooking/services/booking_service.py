from carbooking.repository.booking_repo import BookingRepository
from carbooking.models.customers import Customer
from carbooking.models.results import OperationResult
from carbooking.schemas.bookings import BookingRequest
from carbooking.services import messages
from carbooking.services.notification_service import NotificationDispatcher
from typing import Optional
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.booking_repo = booking_repo
        self.notifier = notifier

    def add_booking(self, req: BookingRequest) -> OperationResult:
        booking = req.to_booking(booking_id=str(uuid4()))
        customer = Customer(
            user_id=req.user_id,
            name=req.customer_info.name,
            email=req.customer_info.email,
            phone=req.customer_info.phone,
            display_name=req.user_info.display_name,
            picture_url=req.user_info.picture_url,
        )

        self.booking_repo.add_booking(booking, customer)
        logger.info(f"Booking {booking.booking_id} created for vehicle {booking.vehicle_id}")

        result = OperationResult(booking_id=booking.booking_id)
        if self.notifier:
            if not self.notifier.send_to_user(booking.user_id, messages.booking_received(booking)):
                result.warnings.append("customer notification failed")
            if not self.notifier.send_to_admin_channel(messages.new_booking_for_admin(booking)):
                result.warnings.append("admin notification failed")
        return result
