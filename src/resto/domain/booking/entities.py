from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from resto.domain.common.ids import BookingId, TableId, UserId

CONFLICT_WINDOW = timedelta(hours=1)


class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class OperationalStatus(str, Enum):
    NOT_REACHED_YET = "not reached yet"
    HAVING_FOOD = "having food"
    DONE = "done"


@dataclass(frozen=True)
class Booking:
    booking_id: BookingId
    user_id: UserId
    table_id: TableId
    booking_date: datetime
    number_of_guests: int
    special_requests: str
    status: BookingStatus
    operational_status: OperationalStatus
    confirmation_email: str | None
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        if self.booking_date.tzinfo is None:
            raise ValueError("booking_date must be timezone-aware")
        if self.number_of_guests < 1:
            raise ValueError("number_of_guests must be >= 1")

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED

    def cancel(self, now: datetime) -> Booking:
        if self.is_cancelled:
            return self
        return replace(self, status=BookingStatus.CANCELLED, updated_at=now)

    def with_operational_status(self, value: OperationalStatus, now: datetime) -> Booking:
        # No ordering between operational states: staff may move a booking back and forth.
        return replace(self, operational_status=value, updated_at=now)


def conflict_window(at: datetime) -> tuple[datetime, datetime]:
    return at - CONFLICT_WINDOW, at + CONFLICT_WINDOW


def create_confirmed_booking(
    booking_id: BookingId,
    user_id: UserId,
    table_id: TableId,
    booking_date: datetime,
    number_of_guests: int,
    special_requests: str | None,
    confirmation_email: str | None,
    now: datetime,
) -> Booking:
    return Booking(
        booking_id=booking_id,
        user_id=user_id,
        table_id=table_id,
        booking_date=booking_date,
        number_of_guests=number_of_guests,
        special_requests=special_requests or "",
        status=BookingStatus.CONFIRMED,
        operational_status=OperationalStatus.NOT_REACHED_YET,
        confirmation_email=confirmation_email,
        created_at=now,
        updated_at=now,
    )
