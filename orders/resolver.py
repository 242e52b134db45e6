"""Market resolution, accepting either asset order in the market name."""

from __future__ import annotations

import structlog

from config.settings import settings
from core.errors import UnknownMarket
from core.state import SessionState
from models.market import Market

logger = structlog.get_logger("orders.resolver")


def reverse_market_name(name: str, separator: str | None = None) -> str:
    """``"btc_eth"`` -> ``"eth_btc"``."""
    sep = separator or settings.PAIR_SEPARATOR
    return sep.join(reversed(name.split(sep)))


def resolve_market(state: SessionState, name: str) -> Market:
    """Return the canonical market for *name*, inverted if *name* is reversed.

    Must be called while holding ``state.read()``.

    Raises
    ------
    UnknownMarket
        If neither *name* nor its reversed form is in the catalog.
    """
    try:
        return state.get_market(name)
    except UnknownMarket:
        reversed_name = reverse_market_name(name)
        try:
            market = state.get_market(reversed_name)
        except UnknownMarket:
            raise UnknownMarket(name) from None

    logger.debug("market_resolver.inverted", requested=name, canonical=reversed_name)
    return market.invert()
