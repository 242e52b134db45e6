"""Typed failures raised while building and signing order requests.

Every failure carries the ``Stage`` at which it happened so that callers
can decide between refreshing the nonce pool, trying another market
name, or giving up.  Nothing here is retried inside the library.
"""

from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    """Construction stage a failure belongs to."""

    MARKET_RESOLUTION = "MARKET_RESOLUTION"
    NONCE_RESOLUTION = "NONCE_RESOLUTION"
    BLOCKCHAIN_SIGNING = "BLOCKCHAIN_SIGNING"
    CANONICAL_SIGNING = "CANONICAL_SIGNING"


class ProtocolError(Exception):
    """Base class for every order-construction failure."""

    stage: Stage = Stage.MARKET_RESOLUTION

    def __init__(self, message: str, *, stage: Stage | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class UnknownMarket(ProtocolError):
    """Market name does not resolve, directly or reversed."""

    stage = Stage.MARKET_RESOLUTION

    def __init__(self, market_name: str) -> None:
        super().__init__(f"Unknown market: {market_name}")
        self.market_name = market_name


class InvalidAmount(ProtocolError):
    """Amount cannot be applied to the resolved market side."""

    stage = Stage.MARKET_RESOLUTION


class MissingNoncePool(ProtocolError):
    """No nonce pool is registered for an asset."""

    stage = Stage.NONCE_RESOLUTION

    def __init__(self, asset_name: str) -> None:
        super().__init__(f"No nonce pool registered for asset {asset_name}")
        self.asset_name = asset_name


class InvalidNonce(ProtocolError, ValueError):
    """Nonce value is outside the range a pool or payload can carry."""

    stage = Stage.NONCE_RESOLUTION


class KeyConversionFailure(ProtocolError):
    """Public key is not representable on a required chain's curve."""

    stage = Stage.BLOCKCHAIN_SIGNING


class SerializationFailure(ProtocolError):
    """Payload could not be canonically serialized (internal defect)."""

    stage = Stage.CANONICAL_SIGNING


class SigningUnavailable(ProtocolError):
    """Signer is missing, or lacks key material for the requested chain."""

    stage = Stage.BLOCKCHAIN_SIGNING
