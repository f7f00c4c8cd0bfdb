from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.domain.booking.entities import (
    BookingStatus,
    OperationalStatus,
    conflict_window,
    create_confirmed_booking,
)
from resto.domain.common.ids import BookingId, TableId, UserId
from resto.domain.table.entities import GuestCountError, Table, TableUnavailableError

AT = datetime(2026, 5, 10, 19, 0, tzinfo=timezone.utc)


def _booking():
    return create_confirmed_booking(
        booking_id=BookingId("bkg_1"),
        user_id=UserId("usr_1"),
        table_id=TableId("tbl_1"),
        booking_date=AT,
        number_of_guests=2,
        special_requests=None,
        confirmation_email="usr_1@example.com",
        now=AT - timedelta(days=1),
    )


def test_new_booking_is_confirmed_and_not_reached() -> None:
    booking = _booking()
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.operational_status == OperationalStatus.NOT_REACHED_YET
    assert booking.special_requests == ""


def test_cancel_is_idempotent() -> None:
    cancelled = _booking().cancel(AT)
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancel(AT + timedelta(hours=1)) is cancelled


def test_operational_status_moves_freely() -> None:
    booking = _booking().with_operational_status(OperationalStatus.DONE, AT)
    back = booking.with_operational_status(OperationalStatus.HAVING_FOOD, AT)
    assert back.operational_status == OperationalStatus.HAVING_FOOD


def test_conflict_window_is_one_hour_each_side() -> None:
    start, end = conflict_window(AT)
    assert end - AT == timedelta(hours=1)
    assert AT - start == timedelta(hours=1)


def test_table_guards() -> None:
    table = Table(table_id=TableId("tbl_1"), table_number=1, capacity=4, is_available=True)
    table.ensure_fits(4)
    with pytest.raises(GuestCountError):
        table.ensure_fits(5)
    with pytest.raises(GuestCountError):
        table.ensure_fits(0)
    with pytest.raises(TableUnavailableError):
        table.with_changes(is_available=False).ensure_bookable()
    with pytest.raises(ValueError):
        table.with_changes(capacity=0)
