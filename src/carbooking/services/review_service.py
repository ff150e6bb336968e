import logging
from typing import Optional
from carbooking.models.bookings import BookingStatus
from carbooking.models.results import OperationResult
from carbooking.repository.booking_repo import BookingRepository
from carbooking.services import messages
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.utils.custom_exceptions import (
    AlreadyReviewed,
    BookingNotCompleted,
    MissingCustomerIdentity,
    NotFoundException,
)

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        notifier: Optional[NotificationDispatcher] = None,
        review_link_base: str = "",
    ):
        self.booking_repo = booking_repo
        self.notifier = notifier
        self.review_link_base = review_link_base

    def request_review(self, booking_id: str) -> OperationResult:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("booking", booking_id)

        if booking.status != BookingStatus.COMPLETED:
            logger.info(f"Review request for {booking_id} rejected: status is {booking.status.value}")
            raise BookingNotCompleted()

        if booking.review_info.submitted:
            logger.info(f"Review request for {booking_id} rejected: already reviewed")
            raise AlreadyReviewed()

        if not booking.user_id:
            logger.info(f"Review request for {booking_id} rejected: no customer identity")
            raise MissingCustomerIdentity()

        result = OperationResult(booking_id=booking_id)
        if self.notifier:
            review_url = f"{self.review_link_base}/{booking_id}"
            if not self.notifier.send_to_user(booking.user_id, messages.review_request(review_url)):
                result.warnings.append("review request notification failed")
        return result
