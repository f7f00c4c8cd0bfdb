from __future__ import annotations

from resto.application.dto.responses import (
    BookingResponse,
    BookingTableResponse,
    BookingUserResponse,
    TableResponse,
)
from resto.application.ports.repositories import BookingRowData
from resto.domain.booking.entities import Booking
from resto.domain.table.entities import Table


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        tableId=str(table.table_id),
        tableNumber=table.table_number,
        capacity=table.capacity,
        isAvailable=table.is_available,
    )


def to_booking_response(
    booking: Booking,
    *,
    table: Table | None = None,
    username: str | None = None,
    email: str | None = None,
) -> BookingResponse:
    return BookingResponse(
        bookingId=str(booking.booking_id),
        userId=str(booking.user_id),
        tableId=str(booking.table_id),
        table=(
            BookingTableResponse(tableNumber=table.table_number, capacity=table.capacity)
            if table is not None
            else None
        ),
        user=(
            BookingUserResponse(username=username, email=email)
            if username is not None or email is not None
            else None
        ),
        bookingDate=booking.booking_date,
        numberOfGuests=booking.number_of_guests,
        specialRequests=booking.special_requests,
        bookingStatus=booking.status.value,
        operationalStatus=booking.operational_status.value,
        createdAt=booking.created_at,
        updatedAt=booking.updated_at,
    )


def to_booking_row_response(row: BookingRowData) -> BookingResponse:
    response = to_booking_response(row.booking, username=row.username, email=row.email)
    if row.table_number is not None and row.table_capacity is not None:
        response.table = BookingTableResponse(
            tableNumber=row.table_number,
            capacity=row.table_capacity,
        )
    return response
