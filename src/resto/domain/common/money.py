from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)

    def minus_floored(self, amount_cents: int) -> Money:
        """Subtract without going below zero; discounts larger than the amount zero it out."""
        return Money(amount_cents=max(0, self.amount_cents - amount_cents), currency=self.currency)

    @property
    def major_units(self) -> float:
        return self.amount_cents / 100
