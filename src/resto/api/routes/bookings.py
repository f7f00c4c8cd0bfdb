from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from resto.api.auth import get_actor, require_admin
from resto.api.tracing import trace_context
from resto.application.dto.requests import BookTableRequest, UpdateBookingStatusRequest
from resto.application.dto.responses import BookingResponse
from resto.application.use_cases.book_table import BookTable
from resto.application.use_cases.booking_status import UpdateBookingOperationalStatus
from resto.application.use_cases.cancel_booking import CancelBooking
from resto.application.use_cases.context import Actor
from resto.application.use_cases.list_bookings import GetBooking, ListAllBookings, ListUserBookings
from resto.domain.common.ids import BookingId
from resto.infrastructure.db.repositories.audit_repo import SqlAlchemyAuditRepository
from resto.infrastructure.db.repositories.booking_repo import SqlAlchemyBookingRepository
from resto.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from resto.infrastructure.db.repositories.user_repo import SqlAlchemyUserRepository
from resto.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def _book_table_use_case() -> BookTable:
    return BookTable(
        table_repository=SqlAlchemyTableRepository(),
        booking_repository=SqlAlchemyBookingRepository(),
        user_repository=SqlAlchemyUserRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        publisher=RedisEventPublisher(),
    )


def _cancel_booking_use_case() -> CancelBooking:
    return CancelBooking(
        booking_repository=SqlAlchemyBookingRepository(),
        table_repository=SqlAlchemyTableRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
        publisher=RedisEventPublisher(),
    )


def _booking_status_use_case() -> UpdateBookingOperationalStatus:
    return UpdateBookingOperationalStatus(
        booking_repository=SqlAlchemyBookingRepository(),
        audit_repository=SqlAlchemyAuditRepository(),
    )


def _get_booking_use_case() -> GetBooking:
    return GetBooking(booking_repository=SqlAlchemyBookingRepository())


def _list_user_bookings_use_case() -> ListUserBookings:
    return ListUserBookings(booking_repository=SqlAlchemyBookingRepository())


def _list_all_bookings_use_case() -> ListAllBookings:
    return ListAllBookings(booking_repository=SqlAlchemyBookingRepository())


@router.post("/v1/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_table(request_dto: BookTableRequest, actor: Actor = Depends(get_actor)) -> BookingResponse:
    return _book_table_use_case().execute(actor, request_dto, trace_context())


@router.get("/v1/bookings/me", response_model=list[BookingResponse])
def my_bookings(actor: Actor = Depends(get_actor)) -> list[BookingResponse]:
    return _list_user_bookings_use_case().execute(actor)


@router.get("/v1/bookings", response_model=list[BookingResponse])
def all_bookings(
    booking_status: str | None = Query(default=None, alias="status"),
    date_from: str | None = Query(default=None, alias="from"),
    date_to: str | None = Query(default=None, alias="to"),
    _: Actor = Depends(require_admin),
) -> list[BookingResponse]:
    return _list_all_bookings_use_case().execute(
        status=booking_status,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/v1/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: str, actor: Actor = Depends(get_actor)) -> BookingResponse:
    return _get_booking_use_case().execute(actor, BookingId(booking_id))


@router.delete("/v1/bookings/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(booking_id: str, actor: Actor = Depends(get_actor)) -> BookingResponse:
    return _cancel_booking_use_case().execute(actor, BookingId(booking_id), trace_context())


@router.put("/v1/bookings/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    request_dto: UpdateBookingStatusRequest,
    actor: Actor = Depends(require_admin),
) -> BookingResponse:
    return _booking_status_use_case().execute(
        actor,
        BookingId(booking_id),
        request_dto.operational_status,
    )
