"""Order requests: the user's trading intent before any resolution."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class BuyOrSell(str, Enum):
    """Order side relative to ``asset_a`` of the market."""

    BUY = "BUY"
    SELL = "SELL"


class CancellationPolicyKind(str, Enum):
    """Time-in-force of a limit order."""

    GOOD_TIL_CANCELLED = "GOOD_TIL_CANCELLED"
    GOOD_TIL_TIME = "GOOD_TIL_TIME"
    IMMEDIATE_OR_CANCEL = "IMMEDIATE_OR_CANCEL"
    FILL_OR_KILL = "FILL_OR_KILL"


class CancellationPolicy(BaseModel):
    """Cancellation policy; only ``GOOD_TIL_TIME`` carries a timestamp."""

    model_config = {"frozen": True}

    kind: CancellationPolicyKind = CancellationPolicyKind.GOOD_TIL_CANCELLED
    cancel_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _cancel_at_only_for_gtt(self) -> CancellationPolicy:
        if self.kind == CancellationPolicyKind.GOOD_TIL_TIME and self.cancel_at is None:
            raise ValueError("GOOD_TIL_TIME requires cancel_at")
        if self.kind != CancellationPolicyKind.GOOD_TIL_TIME and self.cancel_at is not None:
            raise ValueError(f"{self.kind.value} does not take cancel_at")
        return self

    @classmethod
    def good_til_time(cls, when: datetime) -> CancellationPolicy:
        return cls(kind=CancellationPolicyKind.GOOD_TIL_TIME, cancel_at=when)

    def cancel_at_value(self) -> Optional[str]:
        """RFC 3339 cancel-at string for GTT orders, ``None`` otherwise."""
        if self.kind != CancellationPolicyKind.GOOD_TIL_TIME or self.cancel_at is None:
            return None
        when = self.cancel_at
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return when.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class LimitOrderRequest(BaseModel):
    """Buy or sell ``amount`` of A at ``price`` (in B) on an A/B market."""

    market: str = Field(..., min_length=3)
    buy_or_sell: BuyOrSell
    amount: Decimal = Field(..., description="Quantity of asset_a")
    price: Decimal = Field(..., gt=0, description="Limit price in asset_b per asset_a")
    cancellation_policy: CancellationPolicy = Field(default_factory=CancellationPolicy)
    allow_taker: bool = True
    client_order_id: Optional[str] = None

    @field_validator("market")
    @classmethod
    def _lowercase_market(cls, v: str) -> str:
        return v.strip().lower()


class MarketOrderRequest(BaseModel):
    """Sell ``amount`` of A for B on an A/B market at the best available rate.

    To buy A, request the reversed market name and sell B.
    """

    market: str = Field(..., min_length=3)
    amount: Decimal = Field(..., description="Quantity of asset_a to sell")
    client_order_id: Optional[str] = None

    @field_validator("market")
    @classmethod
    def _lowercase_market(cls, v: str) -> str:
        return v.strip().lower()
