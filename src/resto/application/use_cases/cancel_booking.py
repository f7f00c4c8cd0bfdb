from __future__ import annotations

from datetime import datetime, timezone

from resto.application.dto.responses import BookingResponse
from resto.application.mappers.event_envelope import serialize_booking_event
from resto.application.mappers.table_mapper import to_booking_row_response
from resto.application.metrics.lifecycle import record_booking
from resto.application.ports.publisher import BOOKING_EVENTS_CHANNEL, EventPublisher
from resto.application.ports.repositories import (
    AuditRepository,
    BookingRepository,
    BookingRowData,
    TableRepository,
)
from resto.application.use_cases.context import Actor, TraceContext
from resto.application.use_cases.errors import BookingNotFoundError, NotResourceOwnerError
from resto.application.use_cases.side_effects import publish_event, record_audit
from resto.domain.common.ids import BookingId


class CancelBooking:
    def __init__(
        self,
        booking_repository: BookingRepository,
        table_repository: TableRepository,
        audit_repository: AuditRepository,
        publisher: EventPublisher,
    ) -> None:
        self._booking_repository = booking_repository
        self._table_repository = table_repository
        self._audit_repository = audit_repository
        self._publisher = publisher

    def execute(
        self,
        actor: Actor,
        booking_id: BookingId,
        trace_ctx: TraceContext,
    ) -> BookingResponse:
        row = self._booking_repository.get(booking_id)
        if row is None:
            raise BookingNotFoundError(f"booking not found for booking_id={booking_id}")
        if not actor.can_access(row.booking.user_id):
            raise NotResourceOwnerError("not allowed to cancel this booking")

        if row.booking.is_cancelled:
            return to_booking_row_response(row)

        now = datetime.now(timezone.utc)
        cancelled = row.booking.cancel(now)
        self._booking_repository.update(cancelled)
        record_booking(cancelled.status.value)

        publish_event(
            self._publisher,
            channel=BOOKING_EVENTS_CHANNEL,
            message=serialize_booking_event(
                event_type="booking.cancelled",
                occurred_at=now,
                booking=cancelled,
                table=self._table_repository.get(cancelled.table_id),
                customer_email=row.email or cancelled.confirmation_email,
                customer_name=row.username,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            ),
        )
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="booking_cancelled",
            resource="booking",
            resource_id=str(booking_id),
            meta={"tableId": str(cancelled.table_id)},
        )

        return to_booking_row_response(
            BookingRowData(
                booking=cancelled,
                table_number=row.table_number,
                table_capacity=row.table_capacity,
                username=row.username,
                email=row.email,
            )
        )
