"""Fill orders: per-chain settlement structures and their signatures.

``FillOrder`` is a closed union over the supported chains.  Each variant
knows its own byte encoding and digest; ``make_fill_order`` and
``sign_fill_order`` dispatch over every variant and fail loudly on
anything else, so adding a chain means touching both.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Union

import structlog
from eth_utils import keccak

from blockchain.keys import NeoPublicKey, PublicKey
from blockchain.signer import ChildSignature, Signer
from models.market import Asset, AssetAmount, Blockchain
from models.nonce import Nonce, PayloadNonces, map_crosschain
from models.payload import BlockchainSignature
from models.rate import Rate

logger = structlog.get_logger("blockchain.fill_order")

# Leading version byte of the account-chain fill-order encodings.
_FILL_ORDER_PREFIX = b"\x01"


def _u16(value: int, order: str = "big") -> bytes:
    return value.to_bytes(2, order)


def _u32(value: int, order: str = "big") -> bytes:
    return value.to_bytes(4, order)


def _u64(value: int, order: str = "big") -> bytes:
    return value.to_bytes(8, order)


@dataclass(frozen=True, slots=True)
class EthereumFillOrder:
    address: str
    asset_from: Asset
    asset_to: Asset
    nonce_from: Nonce
    nonce_to: Nonce
    amount: AssetAmount
    min_order: Rate
    max_order: Rate
    fee_rate: Rate
    order_nonce: Nonce

    blockchain = Blockchain.ETHEREUM

    def encode(self) -> bytes:
        return b"".join(
            [
                _FILL_ORDER_PREFIX,
                bytes.fromhex(self.address.removeprefix("0x")),
                _u16(self.asset_from.asset_id),
                _u16(self.asset_to.asset_id),
                _u32(self.nonce_from.encoded()),
                _u32(self.nonce_to.encoded()),
                _u64(self.amount.to_encoded()),
                _u64(self.min_order.value),
                _u64(self.max_order.value),
                _u64(self.fee_rate.value),
                _u32(self.order_nonce.encoded()),
            ]
        )

    def digest(self) -> bytes:
        return keccak(self.encode())


@dataclass(frozen=True, slots=True)
class BitcoinFillOrder:
    """Only nonces; the settlement script takes everything else off-band."""

    nonce_from: Nonce
    nonce_to: Nonce

    blockchain = Blockchain.BITCOIN

    def encode(self) -> bytes:
        return _u32(self.nonce_from.encoded()) + _u32(self.nonce_to.encoded())

    def digest(self) -> bytes:
        return hashlib.sha256(hashlib.sha256(self.encode()).digest()).digest()


@dataclass(frozen=True, slots=True)
class NeoFillOrder:
    public_key: NeoPublicKey
    asset_from: Asset
    asset_to: Asset
    nonce_from: Nonce
    nonce_to: Nonce
    amount: AssetAmount
    min_order: Rate
    max_order: Rate
    fee_rate: Rate
    order_nonce: Nonce

    blockchain = Blockchain.NEO

    def encode(self) -> bytes:
        return b"".join(
            [
                _FILL_ORDER_PREFIX,
                self.public_key.compressed,
                _u16(self.asset_from.asset_id, "little"),
                _u16(self.asset_to.asset_id, "little"),
                _u32(self.nonce_from.encoded(), "little"),
                _u32(self.nonce_to.encoded(), "little"),
                _u64(self.amount.to_encoded(), "little"),
                _u64(self.min_order.value, "little"),
                _u64(self.max_order.value, "little"),
                _u64(self.fee_rate.value, "little"),
                _u32(self.order_nonce.encoded(), "little"),
            ]
        )

    def digest(self) -> bytes:
        return hashlib.sha256(self.encode()).digest()


FillOrder = Union[EthereumFillOrder, BitcoinFillOrder, NeoFillOrder]


def make_fill_order(
    chain: Blockchain,
    source: AssetAmount,
    destination: Asset,
    public_key: PublicKey,
    nonces: PayloadNonces,
) -> FillOrder:
    """Build the settlement structure for *chain*.

    Min/max rates are the "no constraint" sentinels: the exchange, not the
    chain, enforces the user's limit.  The amount is always in the source
    asset.  Pure and deterministic for identical inputs.

    Raises
    ------
    KeyConversionFailure
        If *public_key* cannot be expressed the way *chain* needs it.
    """
    nonce_from = map_crosschain(nonces.nonce_from, chain, source.asset)
    nonce_to = map_crosschain(nonces.nonce_to, chain, destination)

    if chain == Blockchain.ETHEREUM:
        return EthereumFillOrder(
            address=public_key.to_eth_address(),
            asset_from=source.asset,
            asset_to=destination,
            nonce_from=nonce_from,
            nonce_to=nonce_to,
            amount=source,
            min_order=Rate.MIN_ORDER,
            max_order=Rate.MAX_ORDER,
            fee_rate=Rate.fee_rate(),
            order_nonce=nonces.order_nonce,
        )
    if chain == Blockchain.BITCOIN:
        return BitcoinFillOrder(nonce_from=nonce_from, nonce_to=nonce_to)
    if chain == Blockchain.NEO:
        return NeoFillOrder(
            public_key=NeoPublicKey.from_public_key(public_key),
            asset_from=source.asset,
            asset_to=destination,
            nonce_from=nonce_from,
            nonce_to=nonce_to,
            amount=source,
            min_order=Rate.MIN_ORDER,
            max_order=Rate.MAX_ORDER,
            fee_rate=Rate.fee_rate(),
            order_nonce=nonces.order_nonce,
        )
    raise ValueError(f"Unsupported blockchain: {chain!r}")


def format_signature(fill_order: FillOrder, signature: ChildSignature) -> str:
    """Render *signature* the way the fill order's chain expects it."""
    rs = signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big")
    if isinstance(fill_order, EthereumFillOrder):
        return (rs + bytes([27 + signature.v])).hex()
    if isinstance(fill_order, (BitcoinFillOrder, NeoFillOrder)):
        return rs.hex()
    raise ValueError(f"Unsupported fill order: {type(fill_order).__name__}")


async def sign_fill_order(
    fill_order: FillOrder,
    signer: Signer,
    public_key: PublicKey,
) -> BlockchainSignature:
    """Sign *fill_order* with the child key of its chain.

    NEO signatures report the compressed NEO key the fill order encodes.
    """
    digest = fill_order.digest()
    signature = await signer.sign_child_key(fill_order.blockchain, digest)
    logger.debug(
        "fill_order.signed",
        blockchain=fill_order.blockchain.value,
        digest=digest.hex(),
    )
    return BlockchainSignature(
        blockchain=fill_order.blockchain.value,
        nonce_from=fill_order.nonce_from.encoded(),
        nonce_to=fill_order.nonce_to.encoded(),
        public_key=(
            fill_order.public_key.to_hex()
            if isinstance(fill_order, NeoFillOrder)
            else public_key.hex
        ),
        signature=format_signature(fill_order, signature),
    )
