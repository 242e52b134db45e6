"""OrderSigningService: entry point for building signed order requests.

Builds never touch nonce pools.  Pools advance only through ``commit``,
once per signed request and in a single exclusive step, so an abandoned
or failed build leaves session state exactly as it was.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Optional, Union

import structlog

from config.settings import settings
from core.errors import ProtocolError
from core.state import SessionState
from models.market import Asset
from models.nonce import PayloadNonces
from models.order import LimitOrderRequest, MarketOrderRequest
from orders import limit, market
from orders.limit import SignedLimitOrders
from orders.market import SignedMarketOrder

logger = structlog.get_logger("orders.service")

SignedRequest = Union[SignedLimitOrders, SignedMarketOrder]


def _now_ms() -> int:
    return int(time.time() * 1000)


class OrderSigningService:
    """Turns order requests into signed GraphQL bodies for one session.

    Parameters
    ----------
    state:
        Shared session state (markets, signer, nonce pools).
    affiliate:
        Affiliate developer code; defaults to ``AFFILIATE_DEVELOPER_CODE``.
    clock:
        Millisecond wall clock, injectable for tests.
    """

    def __init__(
        self,
        state: SessionState,
        affiliate: Optional[str] = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._state = state
        self._affiliate = affiliate if affiliate is not None else settings.AFFILIATE_DEVELOPER_CODE
        self._clock = clock
        self._commit_lock = asyncio.Lock()

    # ── Builds ───────────────────────────────────────────────────

    async def limit_orders(self, requests: Sequence[LimitOrderRequest]) -> SignedLimitOrders:
        """Build one batched mutation for *requests*, preserving their order."""
        if not requests:
            raise ValueError("At least one limit order request is required")
        current_time = self._clock()
        try:
            constructors = await limit.make_constructors(self._state, requests)
            return await limit.signed_limit_orders(
                self._state, constructors, current_time, self._affiliate
            )
        except ProtocolError as exc:
            logger.warning(
                "order_service.limit_orders_failed",
                stage=exc.stage.value,
                error=type(exc).__name__,
                detail=str(exc),
                count=len(requests),
            )
            raise

    async def market_order(self, request: MarketOrderRequest) -> SignedMarketOrder:
        current_time = self._clock()
        try:
            constructor = await market.make_constructor(self._state, request)
            return await market.signed_market_order(
                self._state, constructor, current_time, self._affiliate
            )
        except ProtocolError as exc:
            logger.warning(
                "order_service.market_order_failed",
                stage=exc.stage.value,
                error=type(exc).__name__,
                detail=str(exc),
                market=request.market,
            )
            raise

    # ── Nonce commit ─────────────────────────────────────────────

    async def commit(
        self,
        signed: SignedRequest,
        settled: Optional[Sequence[PayloadNonces]] = None,
    ) -> bool:
        """Advance nonce pools for a request the exchange accepted.

        *settled* narrows the consumed combinations (e.g. the one a market
        order actually filled against); by default every signed
        combination counts as consumed.  Returns False if *signed* was
        already committed.
        """
        async with self._commit_lock:
            if signed.committed:
                return False
            consumed = _consumed_nonces(signed, settled)
            await self._state.advance_nonce_pools(consumed)
            signed.committed = True
        return True


def _consumed_nonces(
    signed: SignedRequest,
    settled: Optional[Sequence[PayloadNonces]],
) -> dict[str, set[int]]:
    if isinstance(signed, SignedLimitOrders):
        sides: Iterable[tuple[Asset, Asset, PayloadNonces]] = (
            (constructor.source.asset, constructor.destination, nonces)
            for constructor, nonces in zip(signed.constructors, signed.nonces)
        )
    else:
        constructor = signed.constructor
        sides = (
            (constructor.source.asset, constructor.destination, nonces)
            for nonces in signed.nonces
        )

    allowed = None if settled is None else set(settled)
    consumed: dict[str, set[int]] = defaultdict(set)
    for source, destination, nonces in sides:
        if allowed is not None and nonces not in allowed:
            continue
        if nonces.nonce_from.value is not None:
            consumed[source.value].add(nonces.nonce_from.value)
        if nonces.nonce_to.value is not None:
            consumed[destination.value].add(nonces.nonce_to.value)
    return dict(consumed)
