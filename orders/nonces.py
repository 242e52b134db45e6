"""Nonce resolution: pooled per-asset nonces into payload nonce combinations.

Pools are snapshotted under the shared lock; expansion itself is pure.
Crosschain substitution happens later, per blockchain, when fill orders
are derived (see ``models.nonce.map_crosschain``).
"""

from __future__ import annotations

from itertools import product

from core.state import SessionState
from models.market import Asset
from models.nonce import MAX_NONCE, Nonce, PayloadNonces


def order_nonce(current_time: int, index: int = 0) -> Nonce:
    """Order nonce for sub-order *index* of a request built at *current_time* (ms).

    The index offset keeps sub-orders of one batch distinct when they are
    built within the same millisecond.  Truncated to u32.
    """
    return Nonce.of((current_time + index) & MAX_NONCE)


async def snapshot_pools(
    state: SessionState,
    source: Asset,
    destination: Asset,
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """Read the source and destination pools under the shared lock.

    Raises
    ------
    MissingNoncePool
        If either asset has no registered pool.
    """
    async with state.read() as view:
        return view.asset_nonce_pool(source.value), view.asset_nonce_pool(destination.value)


def expand_nonces(
    from_pool: tuple[int, ...],
    to_pool: tuple[int, ...],
    order: Nonce,
) -> list[PayloadNonces]:
    """The full ``from x to`` product, from-major order.

    Pools hold distinct values (``SessionState`` drops repeats), so each
    pair appears exactly once.
    """
    return [
        PayloadNonces(
            nonce_from=Nonce.pooled(nonce_from),
            nonce_to=Nonce.pooled(nonce_to),
            order_nonce=order,
        )
        for nonce_from, nonce_to in product(from_pool, to_pool)
    ]


def latest_nonces(
    from_pool: tuple[int, ...],
    to_pool: tuple[int, ...],
    order: Nonce,
) -> PayloadNonces:
    """The single combination limit orders sign with: the newest pooled value per side."""
    return PayloadNonces(
        nonce_from=Nonce.pooled(max(from_pool)),
        nonce_to=Nonce.pooled(max(to_pool)),
        order_nonce=order,
    )


async def market_order_nonces(
    state: SessionState,
    source: Asset,
    destination: Asset,
    current_time: int,
) -> list[PayloadNonces]:
    from_pool, to_pool = await snapshot_pools(state, source, destination)
    return expand_nonces(from_pool, to_pool, order_nonce(current_time))


async def limit_order_nonces(
    state: SessionState,
    source: Asset,
    destination: Asset,
    current_time: int,
    index: int,
) -> PayloadNonces:
    from_pool, to_pool = await snapshot_pools(state, source, destination)
    return latest_nonces(from_pool, to_pool, order_nonce(current_time, index))
