from __future__ import annotations

from datetime import datetime, timezone

from resto.application.dto.responses import TableResponse
from resto.application.mappers.table_mapper import to_table_response
from resto.application.metrics.lifecycle import record_available_tables_request
from resto.application.ports.repositories import BookingRepository, TableRepository
from resto.application.use_cases.errors import InvalidInputError
from resto.domain.booking.entities import conflict_window
from resto.domain.common.ids import TableId

AVAILABLE_TABLES_LIMIT = 6


class InvalidBookingDateError(InvalidInputError):
    pass


def parse_booking_date(raw: str) -> datetime:
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise InvalidBookingDateError(f"invalid bookingDate format: {raw}") from exc
    return ensure_utc(parsed)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AvailabilityChecker:
    """Answers whether a Confirmed booking falls within one hour of a requested time."""

    def __init__(self, booking_repository: BookingRepository) -> None:
        self._booking_repository = booking_repository

    def has_conflict(self, table_id: TableId, at: datetime) -> bool:
        window_start, window_end = conflict_window(at)
        return self._booking_repository.has_conflict(table_id, window_start, window_end)

    def booked_table_ids(self, at: datetime) -> set[TableId]:
        window_start, window_end = conflict_window(at)
        return self._booking_repository.booked_table_ids(window_start, window_end)


class FindAvailableTables:
    def __init__(
        self,
        table_repository: TableRepository,
        booking_repository: BookingRepository,
        limit: int = AVAILABLE_TABLES_LIMIT,
    ) -> None:
        self._table_repository = table_repository
        self._checker = AvailabilityChecker(booking_repository)
        self._limit = limit

    def execute(self, booking_date: str | None = None) -> list[TableResponse]:
        requested_time = parse_booking_date(booking_date) if booking_date else None

        tables = sorted(self._table_repository.list_available(), key=lambda t: t.table_number)
        if requested_time is not None:
            booked = {str(table_id) for table_id in self._checker.booked_table_ids(requested_time)}
            tables = [table for table in tables if str(table.table_id) not in booked]

        record_available_tables_request(filtered=requested_time is not None)
        return [to_table_response(table) for table in tables[: self._limit]]
