"""Wire payloads: GraphQL variable shapes for order placement.

Field names are snake_case in Python and in the canonical signing
string; the wire form uses camelCase aliases (``by_alias=True``).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.order import BuyOrSell, CancellationPolicyKind


class WireModel(BaseModel):
    """Base for every GraphQL input object."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CurrencyAmountParams(WireModel):
    amount: str
    currency: str


class CurrencyPriceParams(WireModel):
    """Price of ``currency_b`` expressed in ``currency_a``."""

    amount: str
    currency_a: str
    currency_b: str


class BlockchainSignature(WireModel):
    """Signed fill order for one blockchain and one nonce combination."""

    blockchain: str
    nonce_from: Optional[int] = None
    nonce_to: Optional[int] = None
    public_key: str
    signature: str


class Signature(WireModel):
    """Overall request signature over the canonical string."""

    signed_digest: str
    public_key: str

    @classmethod
    def empty(cls) -> Signature:
        return cls(signed_digest="", public_key="")


class PlaceLimitOrderParams(WireModel):
    allow_taker: bool
    buy_or_sell: BuyOrSell
    cancel_at: Optional[str] = None
    cancellation_policy: CancellationPolicyKind
    client_order_id: Optional[str] = None
    market_name: str
    amount: CurrencyAmountParams
    nonce_from: int
    nonce_to: int
    nonce_order: int
    timestamp: int
    limit_price: CurrencyPriceParams
    blockchain_signatures: list[BlockchainSignature] = Field(default_factory=list)


class PlaceMarketOrderParams(WireModel):
    buy_or_sell: BuyOrSell
    client_order_id: Optional[str] = None
    market_name: str
    amount: CurrencyAmountParams
    nonce_from: Optional[int] = None
    nonce_to: Optional[int] = None
    nonce_order: int
    timestamp: int
    blockchain_signatures: list[BlockchainSignature] = Field(default_factory=list)


class PlaceLimitOrderVariables(WireModel):
    payload: PlaceLimitOrderParams
    signature: Signature = Field(default_factory=Signature.empty)
    affiliate: Optional[str] = None


class PlaceMarketOrderVariables(WireModel):
    payload: PlaceMarketOrderParams
    signature: Signature = Field(default_factory=Signature.empty)
    affiliate: Optional[str] = None
