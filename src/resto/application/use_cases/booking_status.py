from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from resto.application.dto.responses import BookingResponse
from resto.application.mappers.table_mapper import to_booking_row_response
from resto.application.ports.repositories import AuditRepository, BookingRepository
from resto.application.use_cases.context import Actor
from resto.application.use_cases.errors import BookingNotFoundError, InvalidInputError
from resto.application.use_cases.side_effects import record_audit
from resto.domain.booking.entities import OperationalStatus
from resto.domain.common.ids import BookingId


class InvalidOperationalStatusError(InvalidInputError):
    pass


def parse_operational_status(value: str | None) -> OperationalStatus:
    try:
        return OperationalStatus(value)
    except ValueError as exc:
        allowed = ", ".join(status.value for status in OperationalStatus)
        raise InvalidOperationalStatusError(
            f"operationalStatus must be one of: {allowed}"
        ) from exc


class UpdateBookingOperationalStatus:
    def __init__(
        self,
        booking_repository: BookingRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self._booking_repository = booking_repository
        self._audit_repository = audit_repository

    def execute(
        self,
        actor: Actor,
        booking_id: BookingId,
        operational_status: str | None,
    ) -> BookingResponse:
        value = parse_operational_status(operational_status)

        row = self._booking_repository.get(booking_id)
        if row is None:
            raise BookingNotFoundError(f"booking not found for booking_id={booking_id}")

        updated = row.booking.with_operational_status(value, datetime.now(timezone.utc))
        self._booking_repository.update(updated)
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="booking_status_updated",
            resource="booking",
            resource_id=str(booking_id),
            meta={
                "from": row.booking.operational_status.value,
                "to": value.value,
            },
        )
        return to_booking_row_response(replace(row, booking=updated))
