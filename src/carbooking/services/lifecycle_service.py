"""Booking status state machine.

Every transition is checked against ``TRANSITIONS``, a set of
``(current status, actor role, requested status)`` triples, in
``authorize_transition``. Nothing else decides whether a move is legal.

Drivers may only move their own bookings forward along
confirmed -> assigned -> stb -> pickup -> completed, skipping steps if
needed; a no-show can be reported any time before pickup.
"""
import logging
from typing import Optional
from carbooking.models.bookings import (
    ACTIVE_STATUSES,
    Booking,
    BookingChange,
    BookingStatus,
    CancelledBy,
)
from carbooking.models.drivers import Driver
from carbooking.models.results import OperationResult
from carbooking.models.users import Actor, ActorRole
from carbooking.repository.booking_repo import BookingRepository
from carbooking.repository.driver_repo import DriverRepository
from carbooking.services import messages
from carbooking.services.notification_service import NotificationDispatcher
from carbooking.utils.constants import CUSTOMER_CANCEL_REASON
from carbooking.utils.custom_exceptions import (
    InvalidRequest,
    InvalidTransition,
    NotFoundException,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

DRIVER_PROGRESSION = [
    BookingStatus.CONFIRMED,
    BookingStatus.ASSIGNED,
    BookingStatus.STB,
    BookingStatus.PICKUP,
    BookingStatus.COMPLETED,
]
DRIVER_TARGETS = {
    BookingStatus.STB,
    BookingStatus.PICKUP,
    BookingStatus.COMPLETED,
    BookingStatus.NOSHOW,
}


def _driver_transitions():
    for i, current in enumerate(DRIVER_PROGRESSION):
        for target in DRIVER_PROGRESSION[i + 1:]:
            if target in DRIVER_TARGETS:
                yield (current, ActorRole.DRIVER, target)
    for current in (BookingStatus.CONFIRMED, BookingStatus.ASSIGNED, BookingStatus.STB):
        yield (current, ActorRole.DRIVER, BookingStatus.NOSHOW)


TRANSITIONS = frozenset(
    {(BookingStatus.PENDING, ActorRole.CUSTOMER, BookingStatus.CANCELLED)}
    | {(s, ActorRole.ADMIN, BookingStatus.CANCELLED) for s in ACTIVE_STATUSES}
    | {(BookingStatus.PENDING, ActorRole.ADMIN, BookingStatus.CONFIRMED)}
    | {
        (s, ActorRole.ADMIN, BookingStatus.ASSIGNED)
        for s in (BookingStatus.PENDING, BookingStatus.CONFIRMED)
    }
    | set(_driver_transitions())
)

RELEASING_STATUSES = {BookingStatus.COMPLETED, BookingStatus.NOSHOW}


def authorize_transition(booking: Booking, actor: Actor, target: BookingStatus):
    if not any(role == actor.role and to == target for _, role, to in TRANSITIONS):
        raise PermissionDenied(f"{actor.role.value} cannot move a booking to {target.value}")

    if actor.role == ActorRole.CUSTOMER and booking.user_id != actor.actor_id:
        raise PermissionDenied("Permission denied")

    if actor.role == ActorRole.DRIVER and booking.driver_id != actor.actor_id:
        raise PermissionDenied("booking is not assigned to this driver")

    if (booking.status, actor.role, target) not in TRANSITIONS:
        raise InvalidTransition(
            f"cannot move booking from {booking.status.value} to {target.value}"
        )


def parse_status(raw: str) -> BookingStatus:
    try:
        return BookingStatus(raw.strip().lower())
    except (AttributeError, ValueError):
        allowed = ", ".join(s.value for s in BookingStatus)
        raise InvalidRequest(f"Invalid status. Allowed: {allowed}")


class LifecycleService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        driver_repo: DriverRepository,
        notifier: Optional[NotificationDispatcher] = None,
        review_link_base: str = "",
    ):
        self.booking_repo = booking_repo
        self.driver_repo = driver_repo
        self.notifier = notifier
        self.review_link_base = review_link_base

    def update_status(
        self, booking_id: str, actor: Actor, new_status: str, note: str = ""
    ) -> OperationResult:
        target = parse_status(new_status)
        if target == BookingStatus.CANCELLED:
            return self.cancel_booking(booking_id, actor, note)
        if target == BookingStatus.ASSIGNED:
            raise InvalidRequest("assigning a booking requires a driver")

        def decide(booking: Booking) -> BookingChange:
            authorize_transition(booking, actor, target)
            release = booking.driver_id if target in RELEASING_STATUSES else None
            return BookingChange(status=target, note=note or "", release_driver_id=release)

        booking, _ = self.booking_repo.apply_change(booking_id, decide)
        logger.info(f"Booking {booking_id} moved to {target.value} by {actor.role.value}")

        result = OperationResult(booking_id=booking_id)
        self._notify_trip_status(booking, target, result)
        return result

    def cancel_booking(
        self, booking_id: str, actor: Actor, reason: Optional[str] = None
    ) -> OperationResult:
        if actor.role == ActorRole.ADMIN and not (reason and reason.strip()):
            raise InvalidRequest("A cancellation reason is required")

        released: dict = {}

        def decide(booking: Booking) -> BookingChange:
            authorize_transition(booking, actor, BookingStatus.CANCELLED)
            released.clear()
            if actor.role == ActorRole.CUSTOMER:
                return BookingChange(
                    status=BookingStatus.CANCELLED,
                    note=CUSTOMER_CANCEL_REASON,
                    cancelled_by=CancelledBy.CUSTOMER,
                    cancel_reason=CUSTOMER_CANCEL_REASON,
                )

            driver = (
                self.driver_repo.get_driver(booking.driver_id) if booking.driver_id else None
            )
            if driver:
                released["driver"] = driver
            return BookingChange(
                status=BookingStatus.CANCELLED,
                note=reason.strip(),
                cancelled_by=CancelledBy.ADMIN,
                cancel_reason=reason.strip(),
                release_driver_id=driver.driver_id if driver else None,
            )

        booking, change = self.booking_repo.apply_change(booking_id, decide)
        logger.info(f"Booking {booking_id} cancelled by {actor.role.value}")

        result = OperationResult(booking_id=booking_id)
        if not self.notifier:
            return result

        if actor.role == ActorRole.CUSTOMER:
            if not self.notifier.send_to_admin_channel(messages.cancelled_by_customer(booking)):
                result.warnings.append("admin notification failed")
            return result

        if booking.user_id and not self.notifier.send_to_user(
            booking.user_id, messages.cancelled_by_admin(booking, change.cancel_reason)
        ):
            result.warnings.append("customer notification failed")
        driver = released.get("driver")
        if driver and driver.line_user_id and not self.notifier.send_to_user(
            driver.line_user_id, messages.job_cancelled_for_driver(booking, change.cancel_reason)
        ):
            result.warnings.append("driver notification failed")
        return result

    def assign_driver(self, booking_id: str, actor: Actor, driver_id: str) -> OperationResult:
        driver = self.driver_repo.get_driver(driver_id)
        if driver is None:
            raise NotFoundException("driver", driver_id)

        def decide(booking: Booking) -> BookingChange:
            authorize_transition(booking, actor, BookingStatus.ASSIGNED)
            previous = booking.driver_id if booking.driver_id != driver_id else None
            return BookingChange(
                status=BookingStatus.ASSIGNED,
                note=f"driver {driver_id} assigned",
                assign_driver_id=driver_id,
                release_driver_id=previous,
            )

        booking, _ = self.booking_repo.apply_change(booking_id, decide)
        logger.info(f"Driver {driver_id} assigned to booking {booking_id}")

        result = OperationResult(booking_id=booking_id)
        if not self.notifier:
            return result
        if driver.line_user_id and not self.notifier.send_to_user(
            driver.line_user_id, messages.job_assigned_for_driver(booking)
        ):
            result.warnings.append("driver notification failed")
        if booking.user_id and not self.notifier.send_to_user(
            booking.user_id, messages.driver_assigned(booking, driver)
        ):
            result.warnings.append("customer notification failed")
        return result

    def _notify_trip_status(self, booking: Booking, status: BookingStatus, result: OperationResult):
        if not self.notifier or not booking.user_id:
            return

        text = messages.trip_status_update(status)
        if text and not self.notifier.send_to_user(booking.user_id, text):
            result.warnings.append("customer notification failed")

        if status == BookingStatus.COMPLETED:
            review_url = f"{self.review_link_base}/{booking.booking_id}"
            if not self.notifier.send_to_user(booking.user_id, messages.review_request(review_url)):
                result.warnings.append("review request notification failed")
