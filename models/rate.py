"""Rates are always "destination per unit source": higher is better for the trader."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum

from core.errors import InvalidAmount


class Rate(int, Enum):
    """Protocol sentinels written into fill orders as u64.

    ``MIN_ORDER`` / ``MAX_ORDER`` mean "no additional on-chain constraint";
    the user's limit is enforced by the exchange, never by these values.
    ``MIN_ORDER`` doubles as the zero fee rate.
    """

    MIN_ORDER = 0
    MAX_ORDER = 2**64 - 1

    @classmethod
    def fee_rate(cls) -> Rate:
        return cls.MIN_ORDER


@dataclass(frozen=True, slots=True)
class OrderRate:
    """A user-supplied limit price, in units of ``asset_b`` per ``asset_a``."""

    value: Decimal

    @classmethod
    def parse(cls, raw: str | Decimal) -> OrderRate:
        try:
            value = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
        except InvalidOperation as exc:
            raise InvalidAmount(f"Price {raw!r} is not a decimal number") from exc
        if not value.is_finite() or value <= 0:
            raise InvalidAmount(f"Price {raw!r} must be a positive finite number")
        return cls(value)

    def invert(self) -> OrderRate:
        return OrderRate(Decimal(1) / self.value)

    def to_wire(self) -> str:
        return format(self.value.normalize(), "f")
