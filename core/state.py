"""SessionState: market catalog, signer and per-asset nonce pools.

Shared by every in-flight order construction.  Reads go through
``read()`` (shared lock); nonce-pool updates take the exclusive lock and
are applied atomically across all assets they touch.  Neither lock is
ever held across a signing call.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

import structlog

from core.errors import MissingNoncePool, SigningUnavailable, UnknownMarket
from core.rwlock import AsyncRWLock
from models.market import Market
from models.nonce import Nonce

if TYPE_CHECKING:
    from blockchain.signer import Signer

logger = structlog.get_logger("core.state")


class SessionState:
    """Process-wide state for one account session.

    Parameters
    ----------
    markets:
        Market catalog, keyed by canonical name.
    signer:
        Signing capability; ``None`` until the session is authenticated.
    asset_nonces:
        Nonce pool per asset name; ``None`` until fetched from the exchange.
    """

    def __init__(
        self,
        markets: Iterable[Market] = (),
        signer: Signer | None = None,
        asset_nonces: Mapping[str, Sequence[int]] | None = None,
    ) -> None:
        self._markets: dict[str, Market] = {market.name: market for market in markets}
        self._signer = signer
        self._asset_nonces: dict[str, tuple[int, ...]] | None = (
            None if asset_nonces is None else _freeze_pools(asset_nonces)
        )
        self._lock = AsyncRWLock()

    # ── Shared access ────────────────────────────────────────────

    @asynccontextmanager
    async def read(self) -> AsyncIterator[SessionState]:
        """Hold the shared lock; lookups below must run inside this block."""
        async with self._lock.read():
            yield self

    def get_market(self, name: str) -> Market:
        market = self._markets.get(name)
        if market is None:
            raise UnknownMarket(name)
        return market

    def asset_nonce_pool(self, asset_name: str) -> tuple[int, ...]:
        if self._asset_nonces is None:
            raise MissingNoncePool(asset_name)
        pool = self._asset_nonces.get(asset_name)
        if not pool:
            raise MissingNoncePool(asset_name)
        return pool

    def signer(self) -> Signer:
        if self._signer is None:
            raise SigningUnavailable("No signer attached to this session")
        return self._signer

    @property
    def market_names(self) -> list[str]:
        return sorted(self._markets)

    # ── Exclusive updates ────────────────────────────────────────

    async def set_markets(self, markets: Iterable[Market]) -> None:
        async with self._lock.write():
            self._markets = {market.name: market for market in markets}
        logger.info("session_state.markets_updated", count=len(self._markets))

    async def set_signer(self, signer: Signer | None) -> None:
        async with self._lock.write():
            self._signer = signer

    async def replace_nonce_pools(self, asset_nonces: Mapping[str, Sequence[int]]) -> None:
        """Install fresh nonce pools, e.g. after re-fetching them from the exchange."""
        pools = _freeze_pools(asset_nonces)
        async with self._lock.write():
            self._asset_nonces = pools
        logger.info("session_state.nonces_replaced", assets=sorted(pools))

    async def advance_nonce_pools(self, consumed: Mapping[str, Iterable[int]]) -> None:
        """Drop consumed nonces from their pools in one exclusive step.

        A pool drained by this call is refilled with the successor of the
        highest consumed value.  Every asset is validated before any pool
        is touched, so a failure leaves all pools unchanged.

        Raises
        ------
        MissingNoncePool
            If an asset in *consumed* has no pool.
        InvalidNonce
            If a drained pool would be refilled past the largest pool nonce.
        """
        used = {asset: frozenset(values) for asset, values in consumed.items()}
        async with self._lock.write():
            for asset in used:
                self.asset_nonce_pool(asset)

            pools = dict(self._asset_nonces or {})
            for asset, values in used.items():
                if not values:
                    continue
                remaining = tuple(n for n in pools[asset] if n not in values)
                if not remaining:
                    remaining = (Nonce.pooled(max(values) + 1).value,)
                pools[asset] = remaining
            self._asset_nonces = pools

        logger.info(
            "session_state.nonces_advanced",
            consumed={asset: sorted(values) for asset, values in used.items()},
        )


def _freeze_pools(asset_nonces: Mapping[str, Sequence[int]]) -> dict[str, tuple[int, ...]]:
    """Validate pool values and drop repeats, keeping first-seen order.

    Raises
    ------
    InvalidNonce
        If a value is negative or reaches the crosschain placeholder.
    """
    return {
        asset: tuple(dict.fromkeys(Nonce.pooled(value).value for value in values))
        for asset, values in asset_nonces.items()
    }
