"""Signer: the signing capability used for fill orders and request payloads.

``Signer`` is the interface order construction depends on.  ``LocalSigner``
implements it with plain secp256k1 keys held in process; signing is
CPU-bound (elliptic-curve math), so it is offloaded to a
``ProcessPoolExecutor`` to avoid blocking the asyncio event loop.
"""

from __future__ import annotations

import asyncio
import hashlib
from abc import ABC, abstractmethod
from collections.abc import Mapping
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Any

import structlog
from eth_keys import keys
from eth_utils import ValidationError

from blockchain.keys import Curve, PublicKey
from config.settings import Settings
from core.errors import SigningUnavailable, Stage
from models.market import Blockchain
from models.payload import Signature

logger = structlog.get_logger("blockchain.signer")


@dataclass(frozen=True, slots=True)
class ChildSignature:
    """Raw ECDSA signature; ``v`` is the recovery id (0 or 1)."""

    r: int
    s: int
    v: int


class Signer(ABC):
    """Signing capability for one account session.

    Every method may raise ``SigningUnavailable`` when the key material
    it needs is not provisioned.
    """

    @abstractmethod
    async def child_public_key(self, chain: Blockchain) -> PublicKey:
        """Public key of the child key used to sign fill orders on *chain*."""

    @abstractmethod
    async def sign_child_key(self, chain: Blockchain, digest: bytes) -> ChildSignature:
        """Sign a fill-order *digest* with the child key of *chain*."""

    @abstractmethod
    async def sign_canonical_string(self, canonical: str) -> Signature:
        """Sign the canonical string of a request with the account payload key."""


# ── Module-level signing function (must be picklable for multiprocessing) ──


def _sign_digest_sync(private_key: str, digest: bytes) -> tuple[int, int, int]:
    """Synchronous secp256k1 signing executed in a worker process."""
    key = keys.PrivateKey(bytes.fromhex(private_key.removeprefix("0x")))
    signature = key.sign_msg_hash(digest)
    return signature.r, signature.s, signature.v


def _compressed_public_key(private_key: str) -> str:
    key = keys.PrivateKey(bytes.fromhex(private_key.removeprefix("0x")))
    return key.public_key.to_compressed_bytes().hex()


def _check_private_key(private_key: str, owner: str, stage: Stage) -> str:
    """Return *private_key* if it is a usable secp256k1 key, else raise ``SigningUnavailable``."""
    try:
        keys.PrivateKey(bytes.fromhex(private_key.removeprefix("0x")))
    except (ValidationError, ValueError) as exc:
        raise SigningUnavailable(f"{owner} is not a valid secp256k1 private key", stage=stage) from exc
    return private_key


# ── In-process signer ───────────────────────────────────────────────


class LocalSigner(Signer):
    """Signer backed by locally held secp256k1 keys and a process pool.

    Parameters
    ----------
    payload_key:
        Hex private key that signs canonical request strings.  Empty means
        not provisioned.
    child_keys:
        Hex private keys per blockchain.  Only secp256k1 chains can be
        provisioned here; NEO keys live on secp256r1 and need an external
        signer.
    max_workers:
        Number of processes in the signing pool.  Defaults to 2.

    Raises
    ------
    SigningUnavailable
        If a provided key is not valid hex for a secp256k1 private key.
    """

    def __init__(
        self,
        payload_key: str,
        child_keys: Mapping[Blockchain, str],
        max_workers: int = 2,
    ) -> None:
        self._payload_key = (
            _check_private_key(payload_key, "Payload signing key", Stage.CANONICAL_SIGNING)
            if payload_key
            else ""
        )
        self._child_keys = {
            chain: _check_private_key(key, f"{chain.value} child key", Stage.BLOCKCHAIN_SIGNING)
            for chain, key in child_keys.items()
            if key
        }
        self._max_workers = max_workers
        self._pool: ProcessPoolExecutor | None = None
        self._public_keys: dict[Blockchain, PublicKey] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalSigner:
        return cls(
            payload_key=settings.PAYLOAD_SIGNING_KEY,
            child_keys={
                Blockchain.ETHEREUM: settings.ETH_CHILD_KEY,
                Blockchain.BITCOIN: settings.BTC_CHILD_KEY,
            },
            max_workers=settings.SIGNER_MAX_WORKERS,
        )

    # ── Lifecycle ────────────────────────────────────────────────

    def start(self) -> None:
        """Start the process pool.  Idempotent."""
        if self._pool is None:
            self._pool = ProcessPoolExecutor(max_workers=self._max_workers)
            logger.info(
                "local_signer.started",
                max_workers=self._max_workers,
                chains=sorted(chain.value for chain in self._child_keys),
            )

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the process pool."""
        if self._pool is not None:
            self._pool.shutdown(wait=wait)
            self._pool = None
            logger.info("local_signer.shutdown")

    # ── Signer interface ─────────────────────────────────────────

    async def child_public_key(self, chain: Blockchain) -> PublicKey:
        cached = self._public_keys.get(chain)
        if cached is not None:
            return cached
        private_key = self._child_key(chain)
        public_key = PublicKey(Curve.SECP256K1, _compressed_public_key(private_key))
        self._public_keys[chain] = public_key
        return public_key

    async def sign_child_key(self, chain: Blockchain, digest: bytes) -> ChildSignature:
        r, s, v = await self._run(_sign_digest_sync, self._child_key(chain), digest)
        return ChildSignature(r=r, s=s, v=v)

    async def sign_canonical_string(self, canonical: str) -> Signature:
        if not self._payload_key:
            raise SigningUnavailable(
                "Payload signing key is not provisioned",
                stage=Stage.CANONICAL_SIGNING,
            )
        digest = hashlib.sha256(canonical.encode()).digest()
        r, s, _ = await self._run(_sign_digest_sync, self._payload_key, digest)
        logger.debug("local_signer.request_signed", digest=digest.hex())
        return Signature(
            signed_digest=(r.to_bytes(32, "big") + s.to_bytes(32, "big")).hex(),
            public_key=_compressed_public_key(self._payload_key),
        )

    # ── Internals ────────────────────────────────────────────────

    def _child_key(self, chain: Blockchain) -> str:
        try:
            return self._child_keys[chain]
        except KeyError:
            raise SigningUnavailable(
                f"No child key provisioned for {chain.value}",
                stage=Stage.BLOCKCHAIN_SIGNING,
            ) from None

    async def _run(self, fn: Any, *args: Any) -> Any:
        if self._pool is None:
            raise RuntimeError("LocalSigner not started, call start() first")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, fn, *args)

    # ── Context manager ──────────────────────────────────────────

    async def __aenter__(self) -> LocalSigner:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.shutdown(wait=True)
