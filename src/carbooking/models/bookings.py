from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    STB = "stb"
    PICKUP = "pickup"
    COMPLETED = "completed"
    NOSHOW = "noshow"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset(
    {
        BookingStatus.PENDING,
        BookingStatus.CONFIRMED,
        BookingStatus.ASSIGNED,
        BookingStatus.STB,
        BookingStatus.PICKUP,
    }
)


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    INVOICED = "invoiced"
    PAID = "paid"


class CancelledBy(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass
class GeoPoint:
    latitude: float
    longitude: float


@dataclass
class PickupInfo:
    address: str
    date_time: datetime
    location: GeoPoint
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.address


@dataclass
class DropoffInfo:
    address: str
    location: GeoPoint


@dataclass
class CustomerInfo:
    name: str
    phone: str
    email: str


@dataclass
class TripDetails:
    passengers: int
    bags: int
    rental_hours: float
    note: str = ""


@dataclass
class PaymentInfo:
    price_per_hour: float
    overtime_rate: float
    total_price: float
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    paid_at: Optional[datetime] = None


@dataclass
class VehicleInfo:
    brand: str = ""
    model: str = ""
    plate_number: str = ""

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model}".strip() or "vehicle"


@dataclass
class StatusEntry:
    status: BookingStatus
    timestamp: datetime
    note: str = ""


@dataclass
class CancellationInfo:
    cancelled_by: CancelledBy
    reason: str
    timestamp: datetime


@dataclass
class ReviewInfo:
    submitted: bool = False


@dataclass
class Booking:
    booking_id: str
    vehicle_id: str
    user_id: Optional[str]
    pickup: PickupInfo
    dropoff: DropoffInfo
    customer_info: CustomerInfo
    trip_details: TripDetails
    payment_info: PaymentInfo
    status: BookingStatus = BookingStatus.PENDING
    driver_id: Optional[str] = None
    vehicle_info: VehicleInfo = field(default_factory=VehicleInfo)
    status_history: List[StatusEntry] = field(default_factory=list)
    cancellation_info: Optional[CancellationInfo] = None
    review_info: ReviewInfo = field(default_factory=ReviewInfo)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def start(self) -> datetime:
        return self.pickup.date_time

    @property
    def end(self) -> datetime:
        return self.start + timedelta(hours=self.trip_details.rental_hours)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def short_ref(self) -> str:
        return self.booking_id[:6].upper()


@dataclass
class BookingChange:
    """A validated transition, applied by the repository in one transaction."""

    status: BookingStatus
    note: str = ""
    cancelled_by: Optional[CancelledBy] = None
    cancel_reason: Optional[str] = None
    assign_driver_id: Optional[str] = None
    release_driver_id: Optional[str] = None
