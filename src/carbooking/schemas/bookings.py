from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from carbooking.models.bookings import (
    Booking,
    BookingStatus,
    CustomerInfo,
    DropoffInfo,
    GeoPoint,
    PaymentInfo,
    PickupInfo,
    TripDetails,
    VehicleInfo,
)
from carbooking.utils.constants import MAX_RENTAL_HOURS


class LatLng(BaseModel):
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)


class PickupRequest(BaseModel):
    name: Optional[str] = None
    address: str = Field(min_length=1)
    date_time: datetime
    location: LatLng

    @field_validator("date_time")
    @classmethod
    def validate_timezone(cls, v: datetime):
        if v.tzinfo is None:
            raise ValueError("pickup date_time must include timezone info")
        return v.astimezone(timezone.utc)


class DropoffRequest(BaseModel):
    address: str = Field(min_length=1)
    location: LatLng


class CustomerInfoRequest(BaseModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: EmailStr


class TripDetailsRequest(BaseModel):
    passengers: int = Field(ge=1)
    bags: int = Field(ge=0)
    rental_hours: float = Field(allow_inf_nan=False)
    note: str = ""

    @field_validator("rental_hours")
    @classmethod
    def validate_rental_hours(cls, v: float):
        if v <= 0:
            raise ValueError("rental_hours must be greater than zero")
        if v > MAX_RENTAL_HOURS:
            raise ValueError(f"Maximum rental is {MAX_RENTAL_HOURS} hours")
        return v


class PaymentRequest(BaseModel):
    price_per_hour: float = Field(ge=0, allow_inf_nan=False)
    overtime_rate: float = Field(default=0, ge=0, allow_inf_nan=False)


class VehicleInfoRequest(BaseModel):
    brand: str = ""
    model: str = ""
    plate_number: str = ""


class UserInfoRequest(BaseModel):
    display_name: Optional[str] = None
    picture_url: Optional[str] = None


class BookingRequest(BaseModel):
    vehicle_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    pickup: PickupRequest
    dropoff: DropoffRequest
    customer_info: CustomerInfoRequest
    trip_details: TripDetailsRequest
    payment_info: PaymentRequest
    vehicle_info: VehicleInfoRequest = Field(default_factory=VehicleInfoRequest)
    user_info: UserInfoRequest = Field(default_factory=UserInfoRequest)

    @model_validator(mode="after")
    def default_pickup_name(self):
        if not self.pickup.name:
            self.pickup.name = self.pickup.address
        return self

    def to_booking(self, booking_id: str) -> Booking:
        total_price = Decimal(str(self.trip_details.rental_hours)) * Decimal(str(self.payment_info.price_per_hour))
        return Booking(
            booking_id=booking_id,
            vehicle_id=self.vehicle_id,
            user_id=self.user_id,
            pickup=PickupInfo(
                name=self.pickup.name,
                address=self.pickup.address,
                date_time=self.pickup.date_time,
                location=GeoPoint(**self.pickup.location.model_dump()),
            ),
            dropoff=DropoffInfo(
                address=self.dropoff.address,
                location=GeoPoint(**self.dropoff.location.model_dump()),
            ),
            customer_info=CustomerInfo(**self.customer_info.model_dump()),
            trip_details=TripDetails(**self.trip_details.model_dump()),
            payment_info=PaymentInfo(
                price_per_hour=self.payment_info.price_per_hour,
                overtime_rate=self.payment_info.overtime_rate,
                total_price=float(total_price),
            ),
            vehicle_info=VehicleInfo(**self.vehicle_info.model_dump()),
            status=BookingStatus.PENDING,
        )


class StatusUpdateRequest(BaseModel):
    status: str = Field(min_length=1)
    note: str = ""


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class AssignDriverRequest(BaseModel):
    driver_id: str = Field(min_length=1)
