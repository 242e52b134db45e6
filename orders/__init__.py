"""Orders package: market resolution, nonces, canonical signing and request assembly."""

from .canonical import canonical_string, general_canonical_string
from .graphql import QueryBody, limit_orders_mutation, market_order_mutation
from .limit import LimitOrderConstructor, SignedLimitOrders
from .market import MarketOrderConstructor, SignedMarketOrder
from .resolver import resolve_market
from .service import OrderSigningService

__all__ = [
    "LimitOrderConstructor",
    "MarketOrderConstructor",
    "OrderSigningService",
    "QueryBody",
    "SignedLimitOrders",
    "SignedMarketOrder",
    "canonical_string",
    "general_canonical_string",
    "limit_orders_mutation",
    "market_order_mutation",
    "resolve_market",
]
