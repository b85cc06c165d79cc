"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Self
from uuid import UUID

CENT = Decimal("0.01")
# Largest amount a numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")
NIL_UUID = UUID(int=0)

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def is_nil(value: UUID | None) -> bool:
    return value is None or value == NIL_UUID


@dataclass(frozen=True)
class Money:
    """Non-negative amount, always carried with exactly two fractional digits."""

    amount: Decimal
    currency: str | None = None

    def __post_init__(self) -> None:
        if not self.amount.is_finite():
            raise ValueError("Money amount must be a finite number")
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")
        # -0 quantizes to Decimal("-0.00"); store it as plain zero
        try:
            normalized = self.amount.quantize(CENT, rounding=ROUND_HALF_UP) + Decimal("0.00")
        except InvalidOperation as e:
            raise ValueError("Money amount is out of range") from e
        if normalized > MAX_AMOUNT:
            raise ValueError(f"Money amount exceeds {MAX_AMOUNT}")
        object.__setattr__(self, "amount", normalized)

        if self.currency is not None:
            code = self.currency.strip().upper()
            if not _CURRENCY_RE.match(code):
                raise ValueError(f"Invalid currency code: {self.currency!r}")
            object.__setattr__(self, "currency", code)

    @classmethod
    def parse(cls, raw: str, currency: str | None = None) -> Self:
        """Build from a decimal string such as "19.99"; raises ValueError on anything else."""
        try:
            amount = Decimal(raw.strip())
        except (InvalidOperation, AttributeError) as e:
            raise ValueError(f"Not a decimal amount: {raw!r}") from e
        return cls(amount=amount, currency=currency or None)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Ticket type counters as observed under the row lock."""

    quantity_total: int
    quantity_sold: int

    def __post_init__(self) -> None:
        if self.quantity_total < 0 or self.quantity_sold < 0:
            raise ValueError("Capacity counters cannot be negative")

    @property
    def remaining(self) -> int:
        return max(0, self.quantity_total - self.quantity_sold)

    @property
    def is_sold_out(self) -> bool:
        return self.quantity_sold >= self.quantity_total
