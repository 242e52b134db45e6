"""Signing steps shared by limit and market orders."""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from pydantic import BaseModel

from blockchain.fill_order import make_fill_order, sign_fill_order
from blockchain.signer import Signer
from core.errors import ProtocolError, Stage
from core.state import SessionState
from models.market import Asset, AssetAmount, Market
from models.nonce import PayloadNonces
from models.payload import BlockchainSignature, Signature
from orders.canonical import canonical_string

logger = structlog.get_logger("orders.signing")


async def session_signer(state: SessionState) -> Signer:
    """Fetch the signer under the shared lock; callers sign after releasing it."""
    async with state.read() as view:
        return view.signer()


async def blockchain_signatures(
    signer: Signer,
    market: Market,
    source: AssetAmount,
    destination: Asset,
    nonces: Sequence[PayloadNonces],
) -> list[BlockchainSignature]:
    """One signed fill order per (blockchain, nonce combination), chains outermost."""
    signatures: list[BlockchainSignature] = []
    for chain in market.blockchains():
        public_key = await signer.child_public_key(chain)
        for combination in nonces:
            fill_order = make_fill_order(chain, source, destination, public_key, combination)
            signatures.append(await sign_fill_order(fill_order, signer, public_key))

    logger.debug(
        "blockchain_signatures.signed",
        market=market.name,
        chains=[chain.value for chain in market.blockchains()],
        combinations=len(nonces),
        count=len(signatures),
    )
    return signatures


async def sign_request(signer: Signer, operation: str, variables: BaseModel) -> Signature:
    """Sign the canonical string of *variables* with the account payload key."""
    canonical = canonical_string(operation, variables)
    try:
        return await signer.sign_canonical_string(canonical)
    except ProtocolError as exc:
        exc.stage = Stage.CANONICAL_SIGNING
        raise
