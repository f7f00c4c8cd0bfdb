from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from resto.application.ports.repositories import (
    BookingRowData,
    BookingWindowTakenError,
    DuplicateTableNumberError,
    TableHasBookingsError,
    InsufficientBalanceAtWriteError,
    LoyaltyTotalsData,
    OptimisticConcurrencyError,
    PointsTotalsData,
    RedemptionRowData,
)
from resto.application.use_cases.context import Actor, TraceContext
from resto.domain.common.ids import MenuItemId, TableId, UserId
from resto.domain.common.money import Money
from resto.domain.loyalty.points import InsufficientPointsError, LoyaltyPolicy
from resto.domain.menu.entities import MenuItem
from resto.domain.table.entities import Table
from resto.domain.user.entities import User, UserRole


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def get(self, user_id):
        return self.users.get(str(user_id))

    def find_by_email(self, email: str):
        for user in self.users.values():
            if user.email.lower() == email.lower():
                return user
        return None

    def add(self, user: User) -> None:
        self.users[str(user.user_id)] = user

    def apply_points(self, user_id, movement):
        user = self.users.get(str(user_id))
        if user is None:
            return None
        try:
            balance = movement.apply(user.points)
        except InsufficientPointsError:
            return None
        self.users[str(user_id)] = user.with_points(balance)
        return balance

    def set_points(self, user_id, points: int):
        user = self.users.get(str(user_id))
        if user is None:
            return None
        self.users[str(user_id)] = user.with_points(points)
        return max(0, points)

    def top_by_points(self, limit: int):
        ranked = sorted(self.users.values(), key=lambda user: (-user.points, str(user.user_id)))
        return [user for user in ranked if user.points > 0][:limit]

    def points_totals(self) -> PointsTotalsData:
        return PointsTotalsData(
            total_points=sum(user.points for user in self.users.values()),
            users_with_points=sum(1 for user in self.users.values() if user.points > 0),
        )


class FakeTableRepository:
    def __init__(self) -> None:
        self.tables: dict[str, Table] = {}
        self.tables_with_bookings: set[str] = set()

    def get(self, table_id):
        return self.tables.get(str(table_id))

    def list_all(self):
        return list(self.tables.values())

    def list_available(self):
        return [table for table in self.tables.values() if table.is_available]

    def add(self, table: Table) -> None:
        if any(existing.table_number == table.table_number for existing in self.tables.values()):
            raise DuplicateTableNumberError(f"duplicate table number {table.table_number}")
        self.tables[str(table.table_id)] = table

    def update(self, table: Table) -> None:
        self.tables[str(table.table_id)] = table

    def delete(self, table_id) -> bool:
        if str(table_id) in self.tables_with_bookings:
            raise TableHasBookingsError(f"table {table_id} still has bookings")
        return self.tables.pop(str(table_id), None) is not None


class FakeBookingRepository:
    def __init__(self, tables: FakeTableRepository, users: FakeUserRepository) -> None:
        self._tables = tables
        self._users = users
        self.bookings: dict[str, object] = {}

    def _row(self, booking) -> BookingRowData:
        table = self._tables.get(booking.table_id)
        user = self._users.get(booking.user_id)
        return BookingRowData(
            booking=booking,
            table_number=table.table_number if table is not None else None,
            table_capacity=table.capacity if table is not None else None,
            username=user.username if user is not None else None,
            email=user.email if user is not None else None,
        )

    def _confirmed_in_window(self, window_start, window_end):
        return [
            booking
            for booking in self.bookings.values()
            if booking.status.value == "Confirmed"
            and window_start <= booking.booking_date <= window_end
        ]

    def get(self, booking_id):
        booking = self.bookings.get(str(booking_id))
        return self._row(booking) if booking is not None else None

    def has_conflict(self, table_id, window_start, window_end) -> bool:
        return any(
            str(booking.table_id) == str(table_id)
            for booking in self._confirmed_in_window(window_start, window_end)
        )

    def booked_table_ids(self, window_start, window_end):
        return {booking.table_id for booking in self._confirmed_in_window(window_start, window_end)}

    def add_if_available(self, booking, window_start, window_end) -> None:
        if self.has_conflict(booking.table_id, window_start, window_end):
            raise BookingWindowTakenError("table is already booked within one hour")
        self.bookings[str(booking.booking_id)] = booking
        self._tables.tables_with_bookings.add(str(booking.table_id))

    def update(self, booking) -> None:
        self.bookings[str(booking.booking_id)] = booking

    def list_for_user(self, user_id):
        return [
            self._row(booking)
            for booking in self.bookings.values()
            if str(booking.user_id) == str(user_id)
        ]

    def list_all(self, status, date_from, date_to):
        rows = []
        for booking in self.bookings.values():
            if status is not None and booking.status != status:
                continue
            if date_from is not None and booking.booking_date < date_from:
                continue
            if date_to is not None and booking.booking_date > date_to:
                continue
            rows.append(self._row(booking))
        return rows


class FakeMenuRepository:
    def __init__(self) -> None:
        self.items: dict[str, MenuItem] = {}
        self.list_calls = 0

    def list_items(self):
        self.list_calls += 1
        return list(self.items.values())

    def get_items(self, item_ids):
        return [self.items[str(item_id)] for item_id in item_ids if str(item_id) in self.items]


class FakeOrderRepository:
    def __init__(self, users: FakeUserRepository) -> None:
        self._users = users
        self.orders: dict[str, object] = {}
        self.fail_points_write = False

    def add(self, order) -> None:
        self.orders[str(order.order_id)] = order

    def get(self, order_id):
        return self.orders.get(str(order_id))

    def _check_version(self, order, expected_version: int) -> None:
        current = self.orders.get(str(order.order_id))
        if current is None or current.version != expected_version:
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")

    def update_with_version(self, order, expected_version: int):
        self._check_version(order, expected_version)
        persisted = replace(order, version=expected_version + 1)
        self.orders[str(order.order_id)] = persisted
        return persisted

    def update_with_points(self, order, expected_version: int, movement):
        self._check_version(order, expected_version)
        if self.fail_points_write:
            raise RuntimeError("points ledger unavailable")
        user = self._users.get(order.user_id)
        if user is None:
            raise LookupError(f"user {order.user_id} not found")
        try:
            balance = movement.apply(user.points)
        except InsufficientPointsError as exc:
            raise InsufficientBalanceAtWriteError(str(exc)) from exc

        self._users.users[str(order.user_id)] = user.with_points(balance)
        persisted = replace(order, version=expected_version + 1)
        self.orders[str(order.order_id)] = persisted
        return persisted, balance

    def delete(self, order_id) -> bool:
        return self.orders.pop(str(order_id), None) is not None

    def list_for_user(self, user_id, limit=None):
        orders = [order for order in self.orders.values() if str(order.user_id) == str(user_id)]
        orders.sort(key=lambda order: order.created_at, reverse=True)
        return orders[:limit] if limit is not None else orders

    def list_all(self, statuses, date_from, date_to, user_id):
        result = []
        for order in self.orders.values():
            if statuses and order.status not in statuses:
                continue
            if date_from is not None and order.created_at < date_from:
                continue
            if date_to is not None and order.created_at > date_to:
                continue
            if user_id is not None and str(order.user_id) != str(user_id):
                continue
            result.append(order)
        return result

    def loyalty_totals(self) -> LoyaltyTotalsData:
        return LoyaltyTotalsData(
            total_earned=sum(order.loyalty.points_earned for order in self.orders.values()),
            total_redeemed=sum(order.loyalty.redeemed_points for order in self.orders.values()),
        )

    def recent_redemptions(self, limit: int):
        redeemed = [order for order in self.orders.values() if order.loyalty.redeemed_points > 0]
        redeemed.sort(key=lambda order: order.updated_at, reverse=True)
        rows = []
        for order in redeemed[:limit]:
            user = self._users.get(order.user_id)
            rows.append(
                RedemptionRowData(
                    order=order,
                    username=user.username if user is not None else None,
                    email=user.email if user is not None else None,
                )
            )
        return rows


class FakeAuditRepository:
    def __init__(self) -> None:
        self.entries = []

    def add(self, entry) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [entry.action for entry in self.entries]


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.fail = False

    def publish(self, channel: str, message: str) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.messages.append((channel, message))


class FakeCache:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False

    def get(self, key: str):
        if self.fail:
            raise ConnectionError("redis down")
        return self.values.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.values[key] = value
        self.ttls[key] = ttl_seconds


class World:
    """In-memory wiring of every repository port a use case depends on."""

    def __init__(self) -> None:
        self.users = FakeUserRepository()
        self.tables = FakeTableRepository()
        self.bookings = FakeBookingRepository(self.tables, self.users)
        self.menu = FakeMenuRepository()
        self.orders = FakeOrderRepository(self.users)
        self.audit = FakeAuditRepository()
        self.publisher = FakePublisher()
        self.cache = FakeCache()
        self.policy = LoyaltyPolicy()
        self.trace_ctx = TraceContext(trace_id="trace-1", request_id="req-1")

    def add_user(
        self,
        user_id: str,
        *,
        points: int = 0,
        role: UserRole = UserRole.CUSTOMER,
        email: str | None = None,
    ) -> Actor:
        self.users.add(
            User(
                user_id=UserId(user_id),
                email=email or f"{user_id}@example.com",
                username=user_id,
                role=role,
                points=points,
                created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            )
        )
        return Actor(user_id=UserId(user_id), role=role)

    def add_table(
        self,
        table_id: str,
        table_number: int,
        capacity: int = 4,
        is_available: bool = True,
    ) -> Table:
        table = Table(
            table_id=TableId(table_id),
            table_number=table_number,
            capacity=capacity,
            is_available=is_available,
        )
        self.tables.add(table)
        return table

    def add_menu_item(
        self,
        item_id: str,
        name: str,
        price_cents: int,
        *,
        currency: str = "INR",
        is_available: bool = True,
        category: str | None = None,
    ) -> MenuItem:
        item = MenuItem(
            item_id=MenuItemId(item_id),
            name=name,
            description=None,
            price_money=Money(amount_cents=price_cents, currency=currency),
            is_available=is_available,
            category=category,
        )
        self.menu.items[item_id] = item
        return item

    def balance(self, user_id: str) -> int:
        return self.users.get(UserId(user_id)).points


@pytest.fixture
def world() -> World:
    return World()
