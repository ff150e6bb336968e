from botocore.exceptions import ClientError
import logging
from typing import Callable, List, Optional, Tuple
from boto3.dynamodb.conditions import Key
from carbooking.models.bookings import (
    ACTIVE_STATUSES,
    Booking,
    BookingChange,
    BookingStatus,
    CancellationInfo,
    CancelledBy,
    CustomerInfo,
    DropoffInfo,
    GeoPoint,
    PaymentInfo,
    PaymentStatus,
    PickupInfo,
    ReviewInfo,
    StatusEntry,
    TripDetails,
    VehicleInfo,
)
from carbooking.models.customers import Customer
from carbooking.models.drivers import DriverStatus
from carbooking.repository.customer_repo import CustomerRepository
from carbooking.repository.driver_repo import DriverRepository
from carbooking.utils.conflict_checker import Interval, Reservation, find_conflicts
from carbooking.utils.constants import CREATED_DAY_INDEX, TRANSACTION_MAX_ATTEMPTS
from carbooking.utils.custom_exceptions import (
    BookingConflict,
    NotFoundException,
    TransientStoreError,
)
from carbooking.utils.datetime_normaliser import from_iso_string, to_iso_string, utc_now
from decimal import Decimal
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)

RETRYABLE_REASONS = {"ConditionalCheckFailed", "TransactionConflict"}


def _decimal(value: float) -> Decimal:
    return Decimal(str(value))


def _geo_item(point: GeoPoint) -> dict:
    return {"latitude": _decimal(point.latitude), "longitude": _decimal(point.longitude)}


def _geo_domain(item: dict) -> GeoPoint:
    return GeoPoint(latitude=float(item["latitude"]), longitude=float(item["longitude"]))


def _history_item(entry: StatusEntry) -> dict:
    return {
        "status": entry.status.value,
        "note": entry.note,
        "timestamp": to_iso_string(entry.timestamp),
    }


def _cancellation_reasons(err: ClientError) -> List[str]:
    return [r.get("Code", "None") for r in err.response.get("CancellationReasons", [])]


def _error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


class BookingRepository:
    """Single-table storage for bookings.

    Admission of a new booking is serialized per vehicle: every commit
    conditionally bumps the version of the vehicle's ``SCHEDULE`` item it
    read before checking for overlaps, so two concurrent writers for the
    same vehicle cannot both commit on a stale view of its active slots.
    """

    def __init__(
        self,
        table: Table,
        client: DynamoDBClient = None,
        clock: Callable[[], datetime] = utc_now,
        max_attempts: int = TRANSACTION_MAX_ATTEMPTS,
    ):
        self.table = table
        self.client = client if client else table.meta.client
        self.clock = clock
        self.max_attempts = max_attempts

    @staticmethod
    def _booking_key(booking_id: str) -> dict:
        return {"pk": f"BOOKING#{booking_id}", "sk": "DETAILS"}

    @staticmethod
    def _schedule_key(vehicle_id: str) -> dict:
        return {"pk": f"VEHICLE#{vehicle_id}", "sk": "SCHEDULE"}

    @staticmethod
    def _slot_key(booking: Booking) -> dict:
        return {
            "pk": f"VEHICLE#{booking.vehicle_id}",
            "sk": f"SLOT#{to_iso_string(booking.start)}#BOOKING#{booking.booking_id}",
        }

    def _to_item(self, booking: Booking, version: int) -> dict:
        item = {
            **self._booking_key(booking.booking_id),
            "booking_id": booking.booking_id,
            "vehicle_id": booking.vehicle_id,
            "user_id": booking.user_id,
            "driver_id": booking.driver_id,
            "booking_status": booking.status.value,
            "vehicle_info": {
                "brand": booking.vehicle_info.brand,
                "model": booking.vehicle_info.model,
                "plate_number": booking.vehicle_info.plate_number,
            },
            "pickup_info": {
                "name": booking.pickup.name,
                "address": booking.pickup.address,
                "date_time": to_iso_string(booking.pickup.date_time),
                "latlng": _geo_item(booking.pickup.location),
            },
            "dropoff_info": {
                "address": booking.dropoff.address,
                "latlng": _geo_item(booking.dropoff.location),
            },
            "customer_info": {
                "name": booking.customer_info.name,
                "phone": booking.customer_info.phone,
                "email": booking.customer_info.email,
            },
            "trip_details": {
                "passengers": booking.trip_details.passengers,
                "bags": booking.trip_details.bags,
                "rental_hours": _decimal(booking.trip_details.rental_hours),
                "note": booking.trip_details.note,
            },
            "payment_info": {
                "price_per_hour": _decimal(booking.payment_info.price_per_hour),
                "overtime_rate": _decimal(booking.payment_info.overtime_rate),
                "total_price": _decimal(booking.payment_info.total_price),
                "payment_status": booking.payment_info.payment_status.value,
                "paid_at": None,
            },
            "status_history": [_history_item(e) for e in booking.status_history],
            "cancellation_info": None,
            "review_info": {"submitted": booking.review_info.submitted},
            "created_at": to_iso_string(booking.created_at),
            "updated_at": to_iso_string(booking.updated_at),
            "created_day": booking.created_at.date().isoformat(),
            "version": version,
        }
        return item

    @staticmethod
    def _to_domain(item: dict) -> Booking:
        pickup = item["pickup_info"]
        dropoff = item["dropoff_info"]
        trip = item["trip_details"]
        payment = item["payment_info"]
        vehicle = item.get("vehicle_info") or {}
        cancellation = item.get("cancellation_info")
        paid_at = payment.get("paid_at")

        return Booking(
            booking_id=item["booking_id"],
            vehicle_id=item["vehicle_id"],
            user_id=item.get("user_id"),
            driver_id=item.get("driver_id"),
            status=BookingStatus(item["booking_status"]),
            vehicle_info=VehicleInfo(
                brand=vehicle.get("brand", ""),
                model=vehicle.get("model", ""),
                plate_number=vehicle.get("plate_number", ""),
            ),
            pickup=PickupInfo(
                name=pickup.get("name"),
                address=pickup["address"],
                date_time=from_iso_string(pickup["date_time"]),
                location=_geo_domain(pickup["latlng"]),
            ),
            dropoff=DropoffInfo(
                address=dropoff["address"],
                location=_geo_domain(dropoff["latlng"]),
            ),
            customer_info=CustomerInfo(
                name=item["customer_info"]["name"],
                phone=item["customer_info"]["phone"],
                email=item["customer_info"]["email"],
            ),
            trip_details=TripDetails(
                passengers=int(trip["passengers"]),
                bags=int(trip["bags"]),
                rental_hours=float(trip["rental_hours"]),
                note=trip.get("note", ""),
            ),
            payment_info=PaymentInfo(
                price_per_hour=float(payment["price_per_hour"]),
                overtime_rate=float(payment["overtime_rate"]),
                total_price=float(payment["total_price"]),
                payment_status=PaymentStatus(payment["payment_status"]),
                paid_at=from_iso_string(paid_at) if paid_at else None,
            ),
            status_history=[
                StatusEntry(
                    status=BookingStatus(e["status"]),
                    note=e.get("note", ""),
                    timestamp=from_iso_string(e["timestamp"]),
                )
                for e in item.get("status_history", [])
            ],
            cancellation_info=(
                CancellationInfo(
                    cancelled_by=CancelledBy(cancellation["cancelled_by"]),
                    reason=cancellation["reason"],
                    timestamp=from_iso_string(cancellation["timestamp"]),
                )
                if cancellation
                else None
            ),
            review_info=ReviewInfo(
                submitted=bool((item.get("review_info") or {}).get("submitted"))
            ),
            created_at=from_iso_string(item["created_at"]),
            updated_at=from_iso_string(item["updated_at"]),
        )

    def _get_schedule_version(self, vehicle_id: str) -> Optional[int]:
        try:
            response = self.table.get_item(
                Key=self._schedule_key(vehicle_id), ConsistentRead=True
            )
        except ClientError as err:
            logger.error(f"Error reading schedule for vehicle {vehicle_id}: {err}")
            raise

        item = response.get("Item")
        if not item:
            return None
        return int(item["version"])

    def get_active_reservations(self, vehicle_id: str, before: datetime) -> List[Reservation]:
        """Active reservations of a vehicle that start strictly before ``before``."""
        query = {
            "KeyConditionExpression": (
                Key("pk").eq(f"VEHICLE#{vehicle_id}")
                & Key("sk").between("SLOT#", f"SLOT#{to_iso_string(before)}")
            ),
            "ConsistentRead": True,
        }
        reservations = []
        try:
            resp = self.table.query(**query)
            while True:
                for item in resp.get("Items", []):
                    start = from_iso_string(item["start"])
                    if start >= before:
                        continue
                    reservations.append(
                        Reservation(
                            booking_id=item["booking_id"],
                            interval=Interval(start, from_iso_string(item["end"])),
                        )
                    )
                if "LastEvaluatedKey" not in resp:
                    break
                resp = self.table.query(**query, ExclusiveStartKey=resp["LastEvaluatedKey"])
        except ClientError as err:
            logger.error(f"Error retrieving reservations for vehicle {vehicle_id}: {err}")
            raise
        return reservations

    def add_booking(self, booking: Booking, customer: Customer) -> Booking:
        requested = Interval.from_rental(booking.start, booking.trip_details.rental_hours)

        for attempt in range(1, self.max_attempts + 1):
            version = self._get_schedule_version(booking.vehicle_id)
            conflicts = find_conflicts(
                requested, self.get_active_reservations(booking.vehicle_id, requested.end)
            )
            if conflicts:
                logger.info(
                    f"Booking for vehicle {booking.vehicle_id} conflicts with "
                    f"{[c.booking_id for c in conflicts]}"
                )
                raise BookingConflict()

            now = self.clock()
            booking.created_at = now
            booking.updated_at = now
            booking.status_history = [
                StatusEntry(status=booking.status, timestamp=now, note="")
            ]
            customer.last_activity = now

            try:
                self.client.transact_write_items(
                    TransactItems=self._admission_items(booking, customer, version, requested)
                )
            except ClientError as err:
                if self._is_retryable(err):
                    logger.warning(
                        f"Admission for vehicle {booking.vehicle_id} lost a race "
                        f"(attempt {attempt}/{self.max_attempts}): {_cancellation_reasons(err)}"
                    )
                    continue
                logger.error(f"Error creating booking {booking.booking_id}: {err}")
                raise
            return booking

        raise TransientStoreError(
            f"could not reserve vehicle {booking.vehicle_id} after {self.max_attempts} attempts"
        )

    def _admission_items(
        self, booking: Booking, customer: Customer, version: Optional[int], requested: Interval
    ) -> list:
        guard = {
            "Update": {
                "TableName": self.table.name,
                "Key": self._schedule_key(booking.vehicle_id),
                "UpdateExpression": "SET #version = :next",
                "ExpressionAttributeNames": {"#version": "version"},
                "ExpressionAttributeValues": {":next": (version or 0) + 1},
            }
        }
        if version is None:
            guard["Update"]["ConditionExpression"] = "attribute_not_exists(pk)"
        else:
            guard["Update"]["ConditionExpression"] = "#version = :expected"
            guard["Update"]["ExpressionAttributeValues"][":expected"] = version

        slot_item = {
            **self._slot_key(booking),
            "booking_id": booking.booking_id,
            "start": to_iso_string(requested.start),
            "end": to_iso_string(requested.end),
        }

        return [
            guard,
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": self._to_item(booking, version=1),
                    "ConditionExpression": "attribute_not_exists(pk)",
                }
            },
            {
                "Put": {
                    "TableName": self.table.name,
                    "Item": slot_item,
                }
            },
            CustomerRepository.merge_update(self.table.name, customer),
        ]

    @staticmethod
    def _is_retryable(err: ClientError) -> bool:
        code = _error_code(err)
        if code == "TransactionConflictException":
            return True
        if code != "TransactionCanceledException":
            return False
        return any(reason in RETRYABLE_REASONS for reason in _cancellation_reasons(err))

    def _get_booking_item(self, booking_id: str) -> Optional[dict]:
        try:
            response = self.table.get_item(
                Key=self._booking_key(booking_id), ConsistentRead=True
            )
        except ClientError as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise
        return response.get("Item")

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        item = self._get_booking_item(booking_id)
        if not item:
            return None
        return self._to_domain(item)

    def apply_change(
        self, booking_id: str, decide: Callable[[Booking], BookingChange]
    ) -> Tuple[Booking, BookingChange]:
        """Read a booking, let ``decide`` validate the transition, and commit it atomically.

        ``decide`` runs again on every retry against the freshly read
        booking, so a transition that became illegal in the meantime is
        rejected rather than applied.
        """
        for attempt in range(1, self.max_attempts + 1):
            item = self._get_booking_item(booking_id)
            if not item:
                raise NotFoundException("booking", booking_id)

            booking = self._to_domain(item)
            change = decide(booking)
            now = self.clock()
            transact_items, labels = self._change_items(
                booking, item.get("version"), change, now
            )

            try:
                self.client.transact_write_items(TransactItems=transact_items)
            except ClientError as err:
                reasons = _cancellation_reasons(err)
                for label, reason in zip(labels, reasons):
                    if label.startswith("DRIVER#") and reason == "ConditionalCheckFailed":
                        raise NotFoundException("driver", label.removeprefix("DRIVER#"))
                if self._is_retryable(err):
                    logger.warning(
                        f"Update of booking {booking_id} lost a race "
                        f"(attempt {attempt}/{self.max_attempts}): {reasons}"
                    )
                    continue
                logger.error(f"Error updating booking {booking_id} status: {err}")
                raise

            self._apply_in_memory(booking, change, now)
            return booking, change

        raise TransientStoreError(
            f"could not update booking {booking_id} after {self.max_attempts} attempts"
        )

    def _change_items(
        self, booking: Booking, version: Optional[int], change: BookingChange, now: datetime
    ) -> Tuple[list, List[str]]:
        now_iso = to_iso_string(now)
        entry = StatusEntry(status=change.status, timestamp=now, note=change.note)

        clauses = [
            "#booking_status = :status",
            "#updated_at = :now",
            "#status_history = list_append(if_not_exists(#status_history, :empty), :entry)",
            "#version = :next",
        ]
        names = {
            "#booking_status": "booking_status",
            "#updated_at": "updated_at",
            "#status_history": "status_history",
            "#version": "version",
        }
        values = {
            ":status": change.status.value,
            ":now": now_iso,
            ":empty": [],
            ":entry": [_history_item(entry)],
            ":next": (version or 0) + 1,
        }

        if change.cancelled_by is not None:
            clauses.append("#cancellation_info = :cancellation")
            names["#cancellation_info"] = "cancellation_info"
            values[":cancellation"] = {
                "cancelled_by": change.cancelled_by.value,
                "reason": change.cancel_reason,
                "timestamp": now_iso,
            }

        if change.assign_driver_id is not None:
            clauses.append("#driver_id = :driver_id")
            names["#driver_id"] = "driver_id"
            values[":driver_id"] = change.assign_driver_id

        update = {
            "TableName": self.table.name,
            "Key": self._booking_key(booking.booking_id),
            "UpdateExpression": "SET " + ", ".join(clauses),
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
        }
        if version is None:
            update["ConditionExpression"] = "attribute_exists(pk) AND attribute_not_exists(#version)"
        else:
            update["ConditionExpression"] = "#version = :expected"
            values[":expected"] = version

        transact_items = [{"Update": update}]
        labels = [f"BOOKING#{booking.booking_id}"]

        if booking.is_active and change.status not in ACTIVE_STATUSES:
            transact_items.append(
                {"Delete": {"TableName": self.table.name, "Key": self._slot_key(booking)}}
            )
            labels.append("SLOT")

        if change.release_driver_id:
            transact_items.append(
                DriverRepository.status_update(
                    self.table.name, change.release_driver_id, DriverStatus.AVAILABLE
                )
            )
            labels.append(f"DRIVER#{change.release_driver_id}")

        if change.assign_driver_id:
            transact_items.append(
                DriverRepository.status_update(
                    self.table.name, change.assign_driver_id, DriverStatus.BUSY
                )
            )
            labels.append(f"DRIVER#{change.assign_driver_id}")

        return transact_items, labels

    @staticmethod
    def _apply_in_memory(booking: Booking, change: BookingChange, now: datetime):
        booking.status = change.status
        booking.updated_at = now
        booking.status_history.append(
            StatusEntry(status=change.status, timestamp=now, note=change.note)
        )
        if change.cancelled_by is not None:
            booking.cancellation_info = CancellationInfo(
                cancelled_by=change.cancelled_by,
                reason=change.cancel_reason,
                timestamp=now,
            )
        if change.assign_driver_id is not None:
            booking.driver_id = change.assign_driver_id

    def mark_invoiced(self, booking_id: str) -> bool:
        """Advance payment to invoiced. Returns False when the booking is already paid."""
        try:
            self.table.update_item(
                Key=self._booking_key(booking_id),
                UpdateExpression="SET #payment.#payment_status = :invoiced, #updated_at = :now",
                ExpressionAttributeNames={
                    "#payment": "payment_info",
                    "#payment_status": "payment_status",
                    "#updated_at": "updated_at",
                },
                ExpressionAttributeValues={
                    ":invoiced": PaymentStatus.INVOICED.value,
                    ":paid": PaymentStatus.PAID.value,
                    ":now": to_iso_string(self.clock()),
                },
                ConditionExpression="attribute_exists(pk) AND #payment.#payment_status <> :paid",
                ReturnValuesOnConditionCheckFailure="ALL_OLD",
            )
        except ClientError as err:
            if _error_code(err) == "ConditionalCheckFailedException":
                if not err.response.get("Item"):
                    raise NotFoundException("booking", booking_id)
                logger.info(f"Booking {booking_id} already paid, invoice left unchanged")
                return False
            logger.error(f"Error invoicing booking {booking_id}: {err}")
            raise
        return True

    def mark_paid(self, booking_id: str) -> datetime:
        paid_at = self.clock()
        paid_at_iso = to_iso_string(paid_at)
        try:
            self.table.update_item(
                Key=self._booking_key(booking_id),
                UpdateExpression=(
                    "SET #payment.#payment_status = :paid, "
                    "#payment.#paid_at = :paid_at, #updated_at = :paid_at"
                ),
                ExpressionAttributeNames={
                    "#payment": "payment_info",
                    "#payment_status": "payment_status",
                    "#paid_at": "paid_at",
                    "#updated_at": "updated_at",
                },
                ExpressionAttributeValues={
                    ":paid": PaymentStatus.PAID.value,
                    ":paid_at": paid_at_iso,
                },
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as err:
            if _error_code(err) == "ConditionalCheckFailedException":
                raise NotFoundException("booking", booking_id)
            logger.error(f"Error confirming payment for booking {booking_id}: {err}")
            raise
        return paid_at

    def mark_review_submitted(self, booking_id: str):
        try:
            self.table.update_item(
                Key=self._booking_key(booking_id),
                UpdateExpression="SET #review_info = :review, #updated_at = :now",
                ExpressionAttributeNames={
                    "#review_info": "review_info",
                    "#updated_at": "updated_at",
                },
                ExpressionAttributeValues={
                    ":review": {"submitted": True},
                    ":now": to_iso_string(self.clock()),
                },
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as err:
            if _error_code(err) == "ConditionalCheckFailedException":
                raise NotFoundException("booking", booking_id)
            logger.error(f"Error marking review for booking {booking_id}: {err}")
            raise

    def get_bookings_created_between(self, start: datetime, end: datetime) -> List[Booking]:
        start_iso = to_iso_string(start)
        end_iso = to_iso_string(end)
        bookings = []
        day = from_iso_string(start_iso).date()
        last_day = from_iso_string(end_iso).date()

        while day <= last_day:
            query = {
                "IndexName": CREATED_DAY_INDEX,
                "KeyConditionExpression": (
                    Key("created_day").eq(day.isoformat())
                    & Key("created_at").between(start_iso, end_iso)
                ),
            }
            try:
                resp = self.table.query(**query)
                while True:
                    for item in resp.get("Items", []):
                        if item["created_at"] < end_iso:
                            bookings.append(self._to_domain(item))
                    if "LastEvaluatedKey" not in resp:
                        break
                    resp = self.table.query(**query, ExclusiveStartKey=resp["LastEvaluatedKey"])
            except ClientError as err:
                logger.error(f"Error retrieving bookings created on {day}: {err}")
                raise
            day += timedelta(days=1)

        return bookings
