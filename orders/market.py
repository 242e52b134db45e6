"""Market orders: one request, every nonce combination signed up front.

A market order always sells ``asset_a`` of the resolved market; asking
for the reversed market name is how a caller sells the other asset.
Signing every ``(from, to)`` pool combination lets the exchange settle
against whichever nonce window is current without another round trip.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from core.state import SessionState
from models.market import Asset, AssetAmount, Market
from models.nonce import PayloadNonces
from models.order import BuyOrSell, MarketOrderRequest
from models.payload import (
    CurrencyAmountParams,
    PlaceMarketOrderParams,
    PlaceMarketOrderVariables,
    Signature,
)
from orders.canonical import PLACE_MARKET_ORDER
from orders.graphql import QueryBody, market_order_mutation
from orders.nonces import market_order_nonces, order_nonce
from orders.resolver import resolve_market
from orders.signing import blockchain_signatures, session_signer, sign_request

logger = structlog.get_logger("orders.market")


@dataclass(frozen=True, slots=True)
class MarketOrderConstructor:
    market: Market
    me_amount: AssetAmount
    source: AssetAmount
    destination: Asset
    client_order_id: Optional[str]

    @classmethod
    def from_market(cls, market: Market, request: MarketOrderRequest) -> MarketOrderConstructor:
        source = market.asset_a.with_amount(request.amount)
        return cls(
            market=market,
            me_amount=source,
            source=source,
            destination=market.asset_b.asset,
            client_order_id=request.client_order_id,
        )

    def graphql_variables(self, current_time: int, affiliate: Optional[str]) -> PlaceMarketOrderVariables:
        # Single payload per request, so no index offset on the order nonce.
        return PlaceMarketOrderVariables(
            payload=PlaceMarketOrderParams(
                buy_or_sell=BuyOrSell.SELL,
                client_order_id=self.client_order_id,
                market_name=self.market.name,
                amount=CurrencyAmountParams(**self.me_amount.to_wire()),
                nonce_from=0,
                nonce_to=0,
                nonce_order=order_nonce(current_time).encoded(),
                timestamp=current_time,
            ),
            signature=Signature.empty(),
            affiliate=affiliate,
        )


@dataclass(slots=True)
class SignedMarketOrder:
    body: QueryBody
    nonces: list[PayloadNonces]
    constructor: MarketOrderConstructor
    committed: bool = False


async def make_constructor(state: SessionState, request: MarketOrderRequest) -> MarketOrderConstructor:
    async with state.read() as view:
        market = resolve_market(view, request.market)
    return MarketOrderConstructor.from_market(market, request)


async def signed_market_order(
    state: SessionState,
    constructor: MarketOrderConstructor,
    current_time: int,
    affiliate: Optional[str] = None,
) -> SignedMarketOrder:
    nonces = await market_order_nonces(
        state,
        constructor.source.asset,
        constructor.destination,
        current_time,
    )
    signer = await session_signer(state)

    variables = constructor.graphql_variables(current_time, affiliate)
    variables.payload.blockchain_signatures = await blockchain_signatures(
        signer,
        constructor.market,
        constructor.source,
        constructor.destination,
        nonces,
    )
    variables.signature = await sign_request(signer, PLACE_MARKET_ORDER, variables)

    logger.info(
        "market_order.signed",
        market=constructor.market.name,
        combinations=len(nonces),
        blockchain_signatures=len(variables.payload.blockchain_signatures),
        timestamp=current_time,
    )
    return SignedMarketOrder(body=market_order_mutation(variables), nonces=nonces, constructor=constructor)
