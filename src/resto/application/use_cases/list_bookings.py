from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from resto.application.dto.responses import BookingResponse
from resto.application.mappers.table_mapper import to_booking_row_response
from resto.application.ports.repositories import BookingRepository
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import (
    BookingNotFoundError,
    InvalidInputError,
    NotResourceOwnerError,
)
from resto.domain.booking.entities import BookingStatus
from resto.domain.common.ids import BookingId


def parse_filter_date(raw: str | None, *, end_of_day: bool = False) -> datetime | None:
    """Parse a listing filter date; unparseable values mean "no filter".

    A bare date used as an upper bound covers the whole day.
    """
    if not raw:
        return None
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if end_of_day and _is_bare_date(value):
        parsed = parsed + timedelta(days=1) - timedelta(microseconds=1)
    return parsed


def _is_bare_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


class GetBooking:
    def __init__(self, booking_repository: BookingRepository) -> None:
        self._booking_repository = booking_repository

    def execute(self, actor: Actor, booking_id: BookingId) -> BookingResponse:
        row = self._booking_repository.get(booking_id)
        if row is None:
            raise BookingNotFoundError(f"booking not found for booking_id={booking_id}")
        if not actor.can_access(row.booking.user_id):
            raise NotResourceOwnerError("not allowed to view this booking")
        return to_booking_row_response(row)


class ListUserBookings:
    def __init__(self, booking_repository: BookingRepository) -> None:
        self._booking_repository = booking_repository

    def execute(self, actor: Actor) -> list[BookingResponse]:
        rows = self._booking_repository.list_for_user(actor.user_id)
        rows.sort(key=lambda row: row.booking.booking_date, reverse=True)
        return [to_booking_row_response(row) for row in rows]


class ListAllBookings:
    def __init__(self, booking_repository: BookingRepository) -> None:
        self._booking_repository = booking_repository

    def execute(
        self,
        status: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> list[BookingResponse]:
        status_filter = None
        if status:
            try:
                status_filter = BookingStatus(status)
            except ValueError as exc:
                raise InvalidInputError(f"unknown bookingStatus: {status}") from exc

        rows = self._booking_repository.list_all(
            status=status_filter,
            date_from=parse_filter_date(date_from),
            date_to=parse_filter_date(date_to, end_of_day=True),
        )
        rows.sort(key=lambda row: row.booking.booking_date, reverse=True)
        return [to_booking_row_response(row) for row in rows]

