"""Nonce: pooled per-asset nonce or the crosschain placeholder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from core.errors import InvalidNonce
from models.market import Asset, Blockchain

MAX_NONCE = 2**32 - 1
# Placeholder understood by settlement contracts for "asset not on this chain".
CROSSCHAIN_NONCE_VALUE = 0xFFFFFFFF
# Pooled nonces stop one short of the crosschain placeholder.
MAX_POOL_NONCE = CROSSCHAIN_NONCE_VALUE - 1


@dataclass(frozen=True, slots=True)
class Nonce:
    """Either a concrete u32 nonce or the ``CROSSCHAIN`` sentinel (``value is None``)."""

    value: int | None

    CROSSCHAIN: ClassVar[Nonce]

    @classmethod
    def of(cls, value: int) -> Nonce:
        if not 0 <= value <= MAX_NONCE:
            raise InvalidNonce(f"nonce must fit in u32, got {value}")
        return cls(value)

    @classmethod
    def pooled(cls, value: int) -> Nonce:
        """A per-asset pool nonce; the crosschain placeholder value is reserved."""
        if not 0 <= value <= MAX_POOL_NONCE:
            raise InvalidNonce(
                f"pool nonce must be in 0..{MAX_POOL_NONCE}, got {value}"
            )
        return cls(value)

    @property
    def is_crosschain(self) -> bool:
        return self.value is None

    def encoded(self) -> int:
        """u32 as written into fill-order payloads."""
        return CROSSCHAIN_NONCE_VALUE if self.value is None else self.value

    def __str__(self) -> str:
        return "Crosschain" if self.value is None else str(self.value)


Nonce.CROSSCHAIN = Nonce(None)


@dataclass(frozen=True, slots=True)
class PayloadNonces:
    """One ``(nonce_from, nonce_to, order_nonce)`` combination."""

    nonce_from: Nonce
    nonce_to: Nonce
    order_nonce: Nonce


def map_crosschain(nonce: Nonce, chain: Blockchain, asset: Asset) -> Nonce:
    """Replace *nonce* with ``CROSSCHAIN`` when *asset* does not settle on *chain*."""
    if asset.blockchain == chain:
        return nonce
    return Nonce.CROSSCHAIN
