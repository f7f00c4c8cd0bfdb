from __future__ import annotations

from dataclasses import dataclass, replace

from resto.domain.common.ids import TableId


@dataclass(frozen=True)
class Table:
    table_id: TableId
    table_number: int
    capacity: int
    is_available: bool

    def __post_init__(self) -> None:
        if self.table_number < 1:
            raise ValueError("table_number must be >= 1")
        if self.capacity < 1:
            raise ValueError("capacity must be >= 1")

    def ensure_bookable(self) -> None:
        if not self.is_available:
            raise TableUnavailableError(f"table #{self.table_number} is not available")

    def ensure_fits(self, guests: int) -> None:
        if guests < 1:
            raise GuestCountError("numberOfGuests must be >= 1")
        if guests > self.capacity:
            raise GuestCountError(
                f"table capacity is {self.capacity}, but {guests} guests requested"
            )

    def with_changes(self, *, capacity: int | None = None, is_available: bool | None = None) -> Table:
        return replace(
            self,
            capacity=self.capacity if capacity is None else capacity,
            is_available=self.is_available if is_available is None else is_available,
        )


class TableUnavailableError(Exception):
    pass


class GuestCountError(ValueError):
    pass
