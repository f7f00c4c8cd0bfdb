from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from resto.application.use_cases.booking_status import (
    InvalidOperationalStatusError,
    UpdateBookingOperationalStatus,
)
from resto.application.use_cases.cancel_booking import CancelBooking
from resto.application.use_cases.errors import BookingNotFoundError, InvalidInputError, NotResourceOwnerError
from resto.application.use_cases.list_bookings import (
    GetBooking,
    ListAllBookings,
    ListUserBookings,
    parse_filter_date,
)
from resto.domain.booking.entities import create_confirmed_booking
from resto.domain.common.ids import BookingId, TableId, UserId
from resto.domain.user.entities import UserRole

AT = datetime(2026, 5, 10, 19, 0, tzinfo=timezone.utc)


def _seed_booking(world, booking_id: str = "bkg_1", user_id: str = "usr_1", at: datetime = AT):
    booking = create_confirmed_booking(
        booking_id=BookingId(booking_id),
        user_id=UserId(user_id),
        table_id=TableId("tbl_1"),
        booking_date=at,
        number_of_guests=2,
        special_requests="window seat",
        confirmation_email=f"{user_id}@example.com",
        now=AT - timedelta(days=2),
    )
    world.bookings.update(booking)
    return booking


def _cancel(world) -> CancelBooking:
    return CancelBooking(world.bookings, world.tables, world.audit, world.publisher)


def test_owner_cancels_booking(world) -> None:
    owner = world.add_user("usr_1")
    world.add_table("tbl_1", 3)
    _seed_booking(world)

    response = _cancel(world).execute(owner, BookingId("bkg_1"), world.trace_ctx)

    assert response.bookingStatus == "Cancelled"
    assert world.bookings.get(BookingId("bkg_1")).booking.is_cancelled
    event = json.loads(world.publisher.messages[0][1])
    assert event["event_type"] == "booking.cancelled"
    assert event["payload"]["tableNumber"] == 3
    assert world.audit.actions() == ["booking_cancelled"]


def test_cancel_twice_is_a_quiet_no_op(world) -> None:
    owner = world.add_user("usr_1")
    world.add_table("tbl_1", 1)
    _seed_booking(world)
    _cancel(world).execute(owner, BookingId("bkg_1"), world.trace_ctx)

    response = _cancel(world).execute(owner, BookingId("bkg_1"), world.trace_ctx)

    assert response.bookingStatus == "Cancelled"
    assert len(world.publisher.messages) == 1
    assert world.audit.actions() == ["booking_cancelled"]


def test_admin_may_cancel_any_booking(world) -> None:
    world.add_user("usr_1")
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_table("tbl_1", 1)
    _seed_booking(world)

    response = _cancel(world).execute(admin, BookingId("bkg_1"), world.trace_ctx)

    assert response.bookingStatus == "Cancelled"


def test_other_customer_cannot_cancel(world) -> None:
    world.add_user("usr_1")
    stranger = world.add_user("usr_2")
    world.add_table("tbl_1", 1)
    _seed_booking(world)

    with pytest.raises(NotResourceOwnerError):
        _cancel(world).execute(stranger, BookingId("bkg_1"), world.trace_ctx)


def test_cancel_unknown_booking(world) -> None:
    owner = world.add_user("usr_1")
    with pytest.raises(BookingNotFoundError):
        _cancel(world).execute(owner, BookingId("bkg_missing"), world.trace_ctx)


def test_operational_status_update(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_table("tbl_1", 1)
    _seed_booking(world)
    use_case = UpdateBookingOperationalStatus(world.bookings, world.audit)

    response = use_case.execute(admin, BookingId("bkg_1"), "having food")

    assert response.operationalStatus == "having food"
    assert response.bookingStatus == "Confirmed"
    assert world.audit.entries[0].meta == {"from": "not reached yet", "to": "having food"}


def test_operational_status_rejects_unknown_value(world) -> None:
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    use_case = UpdateBookingOperationalStatus(world.bookings, world.audit)
    with pytest.raises(InvalidOperationalStatusError):
        use_case.execute(admin, BookingId("bkg_1"), "seated")


def test_get_booking_visibility(world) -> None:
    owner = world.add_user("usr_1")
    stranger = world.add_user("usr_2")
    admin = world.add_user("adm_1", role=UserRole.ADMIN)
    world.add_table("tbl_1", 1)
    _seed_booking(world)
    use_case = GetBooking(world.bookings)

    assert use_case.execute(owner, BookingId("bkg_1")).bookingId == "bkg_1"
    assert use_case.execute(admin, BookingId("bkg_1")).user.username == "usr_1"
    with pytest.raises(NotResourceOwnerError):
        use_case.execute(stranger, BookingId("bkg_1"))


def test_user_bookings_newest_first(world) -> None:
    owner = world.add_user("usr_1")
    world.add_user("usr_2")
    world.add_table("tbl_1", 1)
    _seed_booking(world, "bkg_early", at=AT)
    _seed_booking(world, "bkg_late", at=AT + timedelta(days=1))
    _seed_booking(world, "bkg_other", user_id="usr_2")

    responses = ListUserBookings(world.bookings).execute(owner)

    assert [response.bookingId for response in responses] == ["bkg_late", "bkg_early"]


def test_admin_listing_filters(world) -> None:
    owner = world.add_user("usr_1")
    world.add_table("tbl_1", 1)
    _seed_booking(world, "bkg_1", at=AT)
    _seed_booking(world, "bkg_2", at=AT + timedelta(days=3))
    _cancel(world).execute(owner, BookingId("bkg_2"), world.trace_ctx)
    use_case = ListAllBookings(world.bookings)

    assert [r.bookingId for r in use_case.execute(status="Confirmed")] == ["bkg_1"]
    assert [r.bookingId for r in use_case.execute(date_from="2026-05-12")] == ["bkg_2"]
    assert [r.bookingId for r in use_case.execute(date_to="2026-05-10")] == ["bkg_1"]
    assert len(use_case.execute(date_from="not-a-date")) == 2
    with pytest.raises(InvalidInputError):
        use_case.execute(status="Pending")


def test_parse_filter_date_end_of_day() -> None:
    parsed = parse_filter_date("2026-05-10", end_of_day=True)
    assert parsed == datetime(2026, 5, 10, 23, 59, 59, 999999, tzinfo=timezone.utc)
    assert parse_filter_date("2026-05-10T12:00:00Z", end_of_day=True).hour == 12
    assert parse_filter_date(None) is None
