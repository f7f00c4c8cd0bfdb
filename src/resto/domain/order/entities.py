from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from resto.domain.common.ids import MenuItemId, OrderId, OrderLineId, UserId
from resto.domain.common.money import Money
from resto.domain.loyalty.points import PointsMovement


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class OrderLine:
    line_id: OrderLineId
    item_id: MenuItemId
    name: str
    quantity: int
    unit_price: Money
    line_total: Money

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price.currency != self.line_total.currency:
            raise ValueError("line_total currency must match unit_price currency")
        expected_total = self.unit_price.amount_cents * self.quantity
        if self.line_total.amount_cents != expected_total:
            raise ValueError("line_total must equal unit_price * quantity")


@dataclass(frozen=True)
class OrderLoyalty:
    points_earned: int
    points_credited: bool = False
    points_credited_at: datetime | None = None
    redeemed_points: int = 0
    discount_applied_cents: int = 0

    def __post_init__(self) -> None:
        if self.points_earned < 0:
            raise ValueError("points_earned must be >= 0")
        if self.redeemed_points < 0 or self.discount_applied_cents < 0:
            raise ValueError("redeemed_points and discount_applied_cents must be >= 0")
        if self.points_credited and self.points_credited_at is None:
            raise ValueError("points_credited_at must be set once points are credited")

    @property
    def has_redemption(self) -> bool:
        return self.redeemed_points > 0


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    user_id: UserId
    status: OrderStatus
    lines: list[OrderLine]
    subtotal: Money
    total: Money
    loyalty: OrderLoyalty
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")
        line_currency = self.lines[0].line_total.currency
        if self.subtotal.currency != line_currency or self.total.currency != line_currency:
            raise ValueError("order totals currency must match line currency")
        expected_subtotal = sum(line.line_total.amount_cents for line in self.lines)
        if self.subtotal.amount_cents != expected_subtotal:
            raise ValueError("order subtotal must equal sum of line totals")
        expected_total = max(0, expected_subtotal - self.loyalty.discount_applied_cents)
        if self.total.amount_cents != expected_total:
            raise ValueError("order total must equal subtotal minus applied discount")
        if self.version < 1:
            raise ValueError("version must be >= 1")

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED

    def with_status(self, new_status: OrderStatus, now: datetime) -> Order:
        if new_status == OrderStatus.CANCELLED:
            raise OrderTransitionError("cancellation must go through cancel()")
        if self.is_cancelled:
            raise OrderTransitionError(
                f"cannot move a cancelled order to status={new_status.value}"
            )
        return replace(self, status=new_status, updated_at=now)

    def credit_points(self, now: datetime) -> tuple[Order, PointsMovement]:
        if self.status != OrderStatus.DELIVERED:
            raise OrderTransitionError(
                f"points are credited on delivery, not from status={self.status.value}"
            )
        if self.loyalty.points_credited or self.loyalty.points_earned == 0:
            return self, PointsMovement()
        credited = replace(
            self,
            loyalty=replace(self.loyalty, points_credited=True, points_credited_at=now),
        )
        return credited, PointsMovement(credit=self.loyalty.points_earned)

    def cancel(
        self,
        now: datetime,
        *,
        allow_after_delivery: bool = True,
    ) -> tuple[Order, PointsMovement]:
        if self.is_cancelled:
            raise OrderAlreadyCancelledError(f"order {self.order_id} is already cancelled")
        if self.status == OrderStatus.DELIVERED and not allow_after_delivery:
            raise OrderTransitionError("cannot cancel an order after delivery")

        debit = self.loyalty.points_earned if self.loyalty.points_credited else 0
        movement = PointsMovement(debit=debit, credit=self.loyalty.redeemed_points)
        return replace(self, status=OrderStatus.CANCELLED, updated_at=now), movement

    def redeem(self, points: int, discount: Money, now: datetime) -> tuple[Order, PointsMovement]:
        if points < 1:
            raise ValueError("points must be a positive integer")
        if self.is_cancelled:
            raise OrderTransitionError("cannot redeem points on a cancelled order")
        if self.loyalty.has_redemption:
            raise PointsAlreadyRedeemedError(f"points already redeemed for order {self.order_id}")
        if discount.currency != self.total.currency:
            raise ValueError("discount currency must match order currency")

        redeemed = replace(
            self,
            total=self.total.minus_floored(discount.amount_cents),
            loyalty=replace(
                self.loyalty,
                redeemed_points=points,
                discount_applied_cents=discount.amount_cents,
            ),
            updated_at=now,
        )
        return redeemed, PointsMovement(debit=points, strict=True)


def create_pending_order(
    order_id: OrderId,
    user_id: UserId,
    lines: list[OrderLine],
    points_earned: int,
    now: datetime,
) -> Order:
    if not lines:
        raise ValueError("order must contain at least one line")

    currency = lines[0].line_total.currency
    subtotal = Money(
        amount_cents=sum(line.line_total.amount_cents for line in lines),
        currency=currency,
    )
    return Order(
        order_id=order_id,
        user_id=user_id,
        status=OrderStatus.PENDING,
        lines=lines,
        subtotal=subtotal,
        total=subtotal,
        loyalty=OrderLoyalty(points_earned=points_earned),
        created_at=now,
        updated_at=now,
    )


class OrderTransitionError(Exception):
    pass


class OrderAlreadyCancelledError(OrderTransitionError):
    pass


class PointsAlreadyRedeemedError(Exception):
    pass
