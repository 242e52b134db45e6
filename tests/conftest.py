"""Shared fixtures: a deterministic fake signer and a small market catalog."""

from __future__ import annotations

import hashlib
from collections.abc import Callable

import pytest
from eth_keys import keys

from blockchain.keys import Curve, PublicKey
from blockchain.signer import ChildSignature, Signer
from core.errors import SigningUnavailable, Stage
from core.state import SessionState
from models.market import Asset, Blockchain, Market
from models.payload import Signature

CHILD_PRIVATE_KEY = keys.PrivateKey(bytes.fromhex("11" * 32))
ETH_PUBLIC_KEY = PublicKey(Curve.SECP256K1, CHILD_PRIVATE_KEY.public_key.to_compressed_bytes().hex())
NEO_PUBLIC_KEY = PublicKey(Curve.SECP256R1, "02" + "5a" * 32)
PAYLOAD_PUBLIC_KEY = "03" + "ab" * 32

NONCE_POOLS = {
    "eth": [10, 11],
    "btc": [20, 21, 22],
    "usdc": [30],
    "neo": [40],
}


class FakeSigner(Signer):
    """Deterministic Signer stub; records every signing call."""

    def __init__(
        self,
        missing: frozenset[Blockchain] = frozenset(),
        payload_key: bool = True,
        neo_key: PublicKey = NEO_PUBLIC_KEY,
    ) -> None:
        self.missing = missing
        self.payload_key = payload_key
        self.neo_key = neo_key
        self.child_calls: list[tuple[Blockchain, bytes]] = []
        self.canonical_strings: list[str] = []

    async def child_public_key(self, chain: Blockchain) -> PublicKey:
        if chain in self.missing:
            raise SigningUnavailable(f"No child key for {chain.value}")
        if chain == Blockchain.NEO:
            return self.neo_key
        return ETH_PUBLIC_KEY

    async def sign_child_key(self, chain: Blockchain, digest: bytes) -> ChildSignature:
        if chain in self.missing:
            raise SigningUnavailable(f"No child key for {chain.value}")
        self.child_calls.append((chain, digest))
        h = hashlib.sha256(chain.value.encode() + digest).digest()
        return ChildSignature(
            r=int.from_bytes(h, "big"),
            s=int.from_bytes(hashlib.sha256(h).digest(), "big"),
            v=h[0] & 1,
        )

    async def sign_canonical_string(self, canonical: str) -> Signature:
        if not self.payload_key:
            raise SigningUnavailable("No payload key", stage=Stage.CANONICAL_SIGNING)
        self.canonical_strings.append(canonical)
        return Signature(
            signed_digest=hashlib.sha256(canonical.encode()).hexdigest(),
            public_key=PAYLOAD_PUBLIC_KEY,
        )


def catalog() -> list[Market]:
    return [
        Market.of(Asset.ETH, 8, Asset.BTC, 8),
        Market.of(Asset.ETH, 8, Asset.USDC, 6),
        Market.of(Asset.NEO, 0, Asset.ETH, 8),
    ]


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def make_signer() -> Callable[..., FakeSigner]:
    return FakeSigner


@pytest.fixture
def markets() -> list[Market]:
    return catalog()


@pytest.fixture
def state(markets: list[Market], signer: FakeSigner) -> SessionState:
    return SessionState(markets=markets, signer=signer, asset_nonces=NONCE_POOLS)
