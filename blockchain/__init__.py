"""Blockchain package: keys, per-chain fill orders and the signing capability."""

from .fill_order import (
    BitcoinFillOrder,
    EthereumFillOrder,
    FillOrder,
    NeoFillOrder,
    make_fill_order,
    sign_fill_order,
)
from .keys import Curve, NeoPublicKey, PublicKey
from .signer import ChildSignature, LocalSigner, Signer

__all__ = [
    "BitcoinFillOrder",
    "ChildSignature",
    "Curve",
    "EthereumFillOrder",
    "FillOrder",
    "LocalSigner",
    "NeoFillOrder",
    "NeoPublicKey",
    "PublicKey",
    "Signer",
    "make_fill_order",
    "sign_fill_order",
]
