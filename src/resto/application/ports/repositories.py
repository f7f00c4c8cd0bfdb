from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from resto.domain.audit.entities import AuditEntry
from resto.domain.booking.entities import Booking, BookingStatus
from resto.domain.common.ids import BookingId, MenuItemId, OrderId, TableId, UserId
from resto.domain.loyalty.points import PointsMovement
from resto.domain.menu.entities import MenuItem
from resto.domain.order.entities import Order, OrderStatus
from resto.domain.table.entities import Table
from resto.domain.user.entities import User


class UserRepository(Protocol):
    def get(self, user_id: UserId) -> User | None: ...

    def find_by_email(self, email: str) -> User | None: ...

    def add(self, user: User) -> None: ...

    def apply_points(self, user_id: UserId, movement: PointsMovement) -> int | None: ...

    def set_points(self, user_id: UserId, points: int) -> int | None: ...

    def top_by_points(self, limit: int) -> list[User]: ...

    def points_totals(self) -> PointsTotalsData: ...


class TableRepository(Protocol):
    def get(self, table_id: TableId) -> Table | None: ...

    def list_all(self) -> list[Table]: ...

    def list_available(self) -> list[Table]: ...

    def add(self, table: Table) -> None: ...

    def update(self, table: Table) -> None: ...

    def delete(self, table_id: TableId) -> bool: ...


class BookingRepository(Protocol):
    def get(self, booking_id: BookingId) -> BookingRowData | None: ...

    def has_conflict(self, table_id: TableId, window_start: datetime, window_end: datetime) -> bool: ...

    def booked_table_ids(self, window_start: datetime, window_end: datetime) -> set[TableId]: ...

    def add_if_available(
        self,
        booking: Booking,
        window_start: datetime,
        window_end: datetime,
    ) -> None: ...

    def update(self, booking: Booking) -> None: ...

    def list_for_user(self, user_id: UserId) -> list[BookingRowData]: ...

    def list_all(
        self,
        status: BookingStatus | None,
        date_from: datetime | None,
        date_to: datetime | None,
    ) -> list[BookingRowData]: ...


class MenuRepository(Protocol):
    def list_items(self) -> list[MenuItem]: ...

    def get_items(self, item_ids: list[MenuItemId]) -> list[MenuItem]: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def update_with_version(self, order: Order, expected_version: int) -> Order: ...

    def update_with_points(
        self,
        order: Order,
        expected_version: int,
        movement: PointsMovement,
    ) -> tuple[Order, int]: ...

    def delete(self, order_id: OrderId) -> bool: ...

    def list_for_user(self, user_id: UserId, limit: int | None = None) -> list[Order]: ...

    def list_all(
        self,
        statuses: list[OrderStatus] | None,
        date_from: datetime | None,
        date_to: datetime | None,
        user_id: UserId | None,
    ) -> list[Order]: ...

    def loyalty_totals(self) -> LoyaltyTotalsData: ...

    def recent_redemptions(self, limit: int) -> list[RedemptionRowData]: ...


class AuditRepository(Protocol):
    def add(self, entry: AuditEntry) -> None: ...


class OptimisticConcurrencyError(Exception):
    pass


class BookingWindowTakenError(Exception):
    pass


class DuplicateTableNumberError(Exception):
    pass


class TableHasBookingsError(Exception):
    pass


class InsufficientBalanceAtWriteError(Exception):
    pass


@dataclass(frozen=True)
class BookingRowData:
    booking: Booking
    table_number: int | None
    table_capacity: int | None
    username: str | None
    email: str | None


@dataclass(frozen=True)
class PointsTotalsData:
    total_points: int
    users_with_points: int


@dataclass(frozen=True)
class LoyaltyTotalsData:
    total_earned: int
    total_redeemed: int


@dataclass(frozen=True)
class RedemptionRowData:
    order: Order
    username: str | None
    email: str | None
