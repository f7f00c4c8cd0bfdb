from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from resto.application.dto.requests import BookTableRequest
from resto.application.dto.responses import BookingResponse
from resto.application.mappers.event_envelope import serialize_booking_event
from resto.application.mappers.table_mapper import to_booking_response
from resto.application.metrics.lifecycle import record_booking, record_booking_conflict
from resto.application.ports.publisher import BOOKING_EVENTS_CHANNEL, EventPublisher
from resto.application.ports.repositories import (
    AuditRepository,
    BookingRepository,
    BookingWindowTakenError,
    TableRepository,
    UserRepository,
)
from resto.application.use_cases.context import Actor, TraceContext
from resto.application.use_cases.errors import (
    ConflictError,
    InvalidInputError,
    TableNotFoundError,
    UnavailableError,
)
from resto.application.use_cases.find_available_tables import AvailabilityChecker, ensure_utc
from resto.application.use_cases.side_effects import publish_event, record_audit
from resto.domain.booking.entities import conflict_window, create_confirmed_booking
from resto.domain.common.ids import BookingId, TableId
from resto.domain.table.entities import GuestCountError, TableUnavailableError

logger = logging.getLogger(__name__)


class TableNotAvailableError(UnavailableError):
    pass


class InvalidGuestCountError(InvalidInputError):
    pass


class BookingConflictError(ConflictError):
    pass


class BookTable:
    def __init__(
        self,
        table_repository: TableRepository,
        booking_repository: BookingRepository,
        user_repository: UserRepository,
        audit_repository: AuditRepository,
        publisher: EventPublisher,
    ) -> None:
        self._table_repository = table_repository
        self._booking_repository = booking_repository
        self._user_repository = user_repository
        self._audit_repository = audit_repository
        self._publisher = publisher
        self._checker = AvailabilityChecker(booking_repository)

    def execute(
        self,
        actor: Actor,
        request_dto: BookTableRequest,
        trace_ctx: TraceContext,
    ) -> BookingResponse:
        table_id = TableId(request_dto.table_id)
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table not found for table_id={table_id}")

        try:
            table.ensure_bookable()
        except TableUnavailableError as exc:
            raise TableNotAvailableError(str(exc)) from exc
        try:
            table.ensure_fits(request_dto.number_of_guests)
        except GuestCountError as exc:
            raise InvalidGuestCountError(str(exc)) from exc

        booking_date = ensure_utc(request_dto.booking_date)
        if self._checker.has_conflict(table_id, booking_date):
            record_booking_conflict()
            raise BookingConflictError(
                "table is already booked within one hour of the requested time"
            )

        user = self._user_repository.get(actor.user_id)
        now = datetime.now(timezone.utc)
        booking = create_confirmed_booking(
            booking_id=BookingId(f"bkg_{uuid4().hex[:12]}"),
            user_id=actor.user_id,
            table_id=table_id,
            booking_date=booking_date,
            number_of_guests=request_dto.number_of_guests,
            special_requests=request_dto.special_requests,
            confirmation_email=user.email if user is not None else None,
            now=now,
        )

        window_start, window_end = conflict_window(booking_date)
        try:
            self._booking_repository.add_if_available(booking, window_start, window_end)
        except BookingWindowTakenError as exc:
            record_booking_conflict()
            raise BookingConflictError(str(exc)) from exc

        record_booking(booking.status.value)
        logger.info(
            "booking_created",
            extra={"booking_id": str(booking.booking_id), "table_id": str(table_id)},
        )

        publish_event(
            self._publisher,
            channel=BOOKING_EVENTS_CHANNEL,
            message=serialize_booking_event(
                event_type="booking.confirmed",
                occurred_at=now,
                booking=booking,
                table=table,
                customer_email=booking.confirmation_email,
                customer_name=user.display_name if user is not None else None,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            ),
        )
        record_audit(
            self._audit_repository,
            actor_id=actor.user_id,
            action="table_booked",
            resource="booking",
            resource_id=str(booking.booking_id),
            meta={
                "tableId": str(table_id),
                "bookingDate": booking_date.isoformat(),
                "numberOfGuests": booking.number_of_guests,
            },
        )

        return to_booking_response(
            booking,
            table=table,
            username=user.username if user is not None else None,
            email=booking.confirmation_email,
        )
