"""Models package: market, nonce, rate, request and wire types."""

from .market import Asset, AssetAmount, AssetPrecision, Blockchain, Market
from .nonce import Nonce, PayloadNonces
from .order import (
    BuyOrSell,
    CancellationPolicy,
    CancellationPolicyKind,
    LimitOrderRequest,
    MarketOrderRequest,
)
from .payload import (
    BlockchainSignature,
    CurrencyAmountParams,
    CurrencyPriceParams,
    PlaceLimitOrderParams,
    PlaceLimitOrderVariables,
    PlaceMarketOrderParams,
    PlaceMarketOrderVariables,
    Signature,
)
from .rate import OrderRate, Rate

__all__ = [
    "Asset",
    "AssetAmount",
    "AssetPrecision",
    "Blockchain",
    "BlockchainSignature",
    "BuyOrSell",
    "CancellationPolicy",
    "CancellationPolicyKind",
    "CurrencyAmountParams",
    "CurrencyPriceParams",
    "LimitOrderRequest",
    "Market",
    "MarketOrderRequest",
    "Nonce",
    "OrderRate",
    "PayloadNonces",
    "PlaceLimitOrderParams",
    "PlaceLimitOrderVariables",
    "PlaceMarketOrderParams",
    "PlaceMarketOrderVariables",
    "Rate",
    "Signature",
]
