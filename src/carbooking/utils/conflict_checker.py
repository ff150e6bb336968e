"""Interval admission checks for vehicle reservations.

Reservations occupy half-open windows ``[start, end)``. Two windows that
only touch (one ends exactly when the other starts) do not conflict.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime

    @classmethod
    def from_rental(cls, start: datetime, rental_hours: float) -> "Interval":
        return cls(start, start + timedelta(hours=rental_hours))


@dataclass(frozen=True)
class Reservation:
    booking_id: str
    interval: Interval


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def find_conflicts(
    requested: Interval, existing: Iterable[Reservation]
) -> List[Reservation]:
    return [r for r in existing if overlaps(requested, r.interval)]
