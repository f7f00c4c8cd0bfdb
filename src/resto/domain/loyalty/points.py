"""Loyalty points arithmetic.

Every balance mutation (delivery credit, cancellation reversal, redemption and
admin adjustment) is expressed as a :class:`PointsMovement` so the in-memory
rule and the SQL ``UPDATE`` stay the same: ``max(0, balance - debit) + credit``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from resto.domain.common.money import Money


class InsufficientPointsError(Exception):
    pass


@dataclass(frozen=True)
class PointsMovement:
    debit: int = 0
    credit: int = 0
    strict: bool = False

    def __post_init__(self) -> None:
        if self.debit < 0 or self.credit < 0:
            raise ValueError("debit and credit must be >= 0")

    @classmethod
    def from_delta(cls, delta: int) -> PointsMovement:
        if delta < 0:
            return cls(debit=-delta)
        return cls(credit=delta)

    @property
    def is_empty(self) -> bool:
        return self.debit == 0 and self.credit == 0

    def apply(self, balance: int) -> int:
        if self.strict and balance < self.debit:
            raise InsufficientPointsError(
                f"insufficient points: balance={balance}, required={self.debit}"
            )
        return max(0, balance - self.debit) + self.credit


@dataclass(frozen=True)
class LoyaltyPolicy:
    points_per_amount: Decimal = Decimal("1")
    point_value: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        if self.points_per_amount <= 0:
            raise ValueError("points_per_amount must be > 0")
        if self.point_value <= 0:
            raise ValueError("point_value must be > 0")

    def points_for(self, total: Money) -> int:
        major = Decimal(total.amount_cents) / Decimal(100)
        points = (major / self.points_per_amount).to_integral_value(rounding=ROUND_DOWN)
        return max(0, int(points))

    def discount_for(self, points: int, currency: str) -> Money:
        cents = (Decimal(points) * self.point_value * Decimal(100)).to_integral_value(
            rounding=ROUND_DOWN
        )
        return Money(amount_cents=int(cents), currency=currency)
