import logging
from typing import Optional
from carbooking.models.results import OperationResult
from carbooking.repository.booking_repo import BookingRepository
from carbooking.services import messages
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.utils.custom_exceptions import NotFoundException

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        notifier: Optional[NotificationDispatcher] = None,
        payment_link_base: str = "",
    ):
        self.booking_repo = booking_repo
        self.notifier = notifier
        self.payment_link_base = payment_link_base

    def send_invoice(self, booking_id: str) -> OperationResult:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("booking", booking_id)

        changed = self.booking_repo.mark_invoiced(booking_id)
        result = OperationResult(booking_id=booking_id)
        if not changed:
            return result

        logger.info(f"Booking {booking_id} invoiced")
        if self.notifier:
            payment_url = f"{self.payment_link_base}/{booking_id}"
            if not self.notifier.send_to_user(booking.user_id, messages.invoice(booking, payment_url)):
                result.warnings.append("customer notification failed")
        return result

    def confirm_payment(self, booking_id: str) -> OperationResult:
        paid_at = self.booking_repo.mark_paid(booking_id)
        logger.info(f"Payment confirmed for booking {booking_id} at {paid_at.isoformat()}")
        return OperationResult(booking_id=booking_id)
