from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.application.dto.requests import BookTableRequest
from resto.application.ports.publisher import BOOKING_EVENTS_CHANNEL
from resto.application.use_cases.book_table import (
    BookingConflictError,
    BookTable,
    InvalidGuestCountError,
    TableNotAvailableError,
)
from resto.application.use_cases.errors import TableNotFoundError

AT = datetime(2026, 5, 10, 19, 0, tzinfo=timezone.utc)


def _use_case(world) -> BookTable:
    return BookTable(
        table_repository=world.tables,
        booking_repository=world.bookings,
        user_repository=world.users,
        audit_repository=world.audit,
        publisher=world.publisher,
    )


def _request(table_id: str = "tbl_1", at: datetime = AT, guests: int = 2) -> BookTableRequest:
    return BookTableRequest(tableId=table_id, bookingDate=at, numberOfGuests=guests)


def test_book_table_confirms_and_publishes(world) -> None:
    actor = world.add_user("usr_1")
    world.add_table("tbl_1", 1, capacity=4)

    response = _use_case(world).execute(actor, _request(), world.trace_ctx)

    assert response.bookingStatus == "Confirmed"
    assert response.operationalStatus == "not reached yet"
    assert response.table is not None and response.table.tableNumber == 1
    assert response.user is not None and response.user.email == "usr_1@example.com"
    assert len(world.bookings.bookings) == 1

    channel, message = world.publisher.messages[0]
    event = json.loads(message)
    assert channel == BOOKING_EVENTS_CHANNEL
    assert event["event_type"] == "booking.confirmed"
    assert event["request_id"] == "req-1"
    assert event["payload"]["customer"]["email"] == "usr_1@example.com"
    assert world.audit.actions() == ["table_booked"]


def test_booking_within_an_hour_of_existing_is_rejected(world) -> None:
    first = world.add_user("usr_1")
    second = world.add_user("usr_2")
    world.add_table("tbl_1", 1)
    _use_case(world).execute(first, _request(), world.trace_ctx)

    with pytest.raises(BookingConflictError):
        _use_case(world).execute(second, _request(at=AT + timedelta(minutes=60)), world.trace_ctx)

    assert len(world.bookings.bookings) == 1


def test_booking_just_outside_window_is_accepted(world) -> None:
    actor = world.add_user("usr_1")
    world.add_table("tbl_1", 1)
    _use_case(world).execute(actor, _request(), world.trace_ctx)

    later = _use_case(world).execute(
        actor, _request(at=AT + timedelta(minutes=61)), world.trace_ctx
    )

    assert later.bookingStatus == "Confirmed"
    assert len(world.bookings.bookings) == 2


def test_cancelled_booking_frees_the_window(world) -> None:
    actor = world.add_user("usr_1")
    world.add_table("tbl_1", 1)
    _use_case(world).execute(actor, _request(), world.trace_ctx)
    booking = next(iter(world.bookings.bookings.values()))
    world.bookings.update(booking.cancel(AT))

    response = _use_case(world).execute(actor, _request(), world.trace_ctx)
    assert response.bookingStatus == "Confirmed"


def test_unknown_table_is_not_found(world) -> None:
    actor = world.add_user("usr_1")
    with pytest.raises(TableNotFoundError):
        _use_case(world).execute(actor, _request("tbl_missing"), world.trace_ctx)


def test_unavailable_table_is_rejected(world) -> None:
    actor = world.add_user("usr_1")
    world.add_table("tbl_1", 1, is_available=False)
    with pytest.raises(TableNotAvailableError):
        _use_case(world).execute(actor, _request(), world.trace_ctx)


def test_guest_count_over_capacity_is_rejected(world) -> None:
    actor = world.add_user("usr_1")
    world.add_table("tbl_1", 1, capacity=4)
    with pytest.raises(InvalidGuestCountError):
        _use_case(world).execute(actor, _request(guests=5), world.trace_ctx)
    assert world.publisher.messages == []


def test_publish_failure_does_not_fail_booking(world) -> None:
    actor = world.add_user("usr_1")
    world.add_table("tbl_1", 1)
    world.publisher.fail = True

    response = _use_case(world).execute(actor, _request(), world.trace_ctx)

    assert response.bookingStatus == "Confirmed"
    assert world.audit.actions() == ["table_booked"]
