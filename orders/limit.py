"""Limit orders: from requests to one batched, fully signed mutation.

Per sub-order: resolve market and amounts, pick one nonce combination
(order nonce offset by the sub-order index), sign a fill order per
blockchain, then sign the canonical string of the payload.  Signed
payloads are assembled into a single mutation in input order.  Any
failure aborts the whole batch.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Optional

import structlog

from core.state import SessionState
from models.market import Asset, AssetAmount, Market
from models.nonce import PayloadNonces
from models.order import BuyOrSell, CancellationPolicy, LimitOrderRequest
from models.payload import (
    CurrencyAmountParams,
    CurrencyPriceParams,
    PlaceLimitOrderParams,
    PlaceLimitOrderVariables,
    Signature,
)
from models.rate import OrderRate
from orders.canonical import PLACE_LIMIT_ORDER
from orders.graphql import QueryBody, limit_orders_mutation
from orders.nonces import limit_order_nonces, order_nonce
from orders.resolver import resolve_market
from orders.signing import blockchain_signatures, session_signer, sign_request

logger = structlog.get_logger("orders.limit")

# Superseded by per-chain fill-order nonces; still required by the schema.
DEPRECATED_NONCE = 1234


@dataclass(frozen=True, slots=True)
class LimitOrderConstructor:
    """A resolved limit order, ready to be signed once."""

    market: Market
    buy_or_sell: BuyOrSell
    me_amount: AssetAmount
    me_rate: OrderRate
    source: AssetAmount
    destination: Asset
    cancellation_policy: CancellationPolicy
    allow_taker: bool
    client_order_id: Optional[str]

    @classmethod
    def from_market(cls, market: Market, request: LimitOrderRequest) -> LimitOrderConstructor:
        """Sell spends A at ``price``; buy spends ``amount * price`` of B at ``1/price``.

        Raises
        ------
        InvalidAmount
            If amount or price cannot be applied to the market.
        """
        me_amount = market.asset_a.with_amount(request.amount)
        me_rate = OrderRate.parse(request.price)

        if request.buy_or_sell == BuyOrSell.SELL:
            source = me_amount
            destination = market.asset_b.asset
        else:
            cost = (me_amount.amount * me_rate.value).quantize(
                Decimal(1).scaleb(-market.asset_b.precision), rounding=ROUND_DOWN
            )
            source = market.asset_b.with_amount(cost)
            destination = market.asset_a.asset

        return cls(
            market=market,
            buy_or_sell=request.buy_or_sell,
            me_amount=me_amount,
            me_rate=me_rate,
            source=source,
            destination=destination,
            cancellation_policy=request.cancellation_policy,
            allow_taker=request.allow_taker,
            client_order_id=request.client_order_id,
        )

    def graphql_variables(
        self,
        current_time: int,
        index: int,
        affiliate: Optional[str],
    ) -> PlaceLimitOrderVariables:
        """Variables with everything but the blockchain and request signatures."""
        return PlaceLimitOrderVariables(
            payload=PlaceLimitOrderParams(
                allow_taker=self.allow_taker,
                buy_or_sell=self.buy_or_sell,
                cancel_at=self.cancellation_policy.cancel_at_value(),
                cancellation_policy=self.cancellation_policy.kind,
                client_order_id=self.client_order_id,
                market_name=self.market.name,
                amount=CurrencyAmountParams(**self.me_amount.to_wire()),
                nonce_from=DEPRECATED_NONCE,
                nonce_to=DEPRECATED_NONCE,
                nonce_order=order_nonce(current_time, index).encoded(),
                timestamp=current_time,
                # Prices are quoted in B for an A/B market, hence the swap.
                limit_price=CurrencyPriceParams(
                    currency_a=self.market.asset_b.asset.value,
                    currency_b=self.market.asset_a.asset.value,
                    amount=self.me_rate.to_wire(),
                ),
            ),
            signature=Signature.empty(),
            affiliate=affiliate,
        )


@dataclass(slots=True)
class SignedLimitOrders:
    """A wire-ready batch plus the nonce combination each sub-order used."""

    body: QueryBody
    nonces: list[PayloadNonces]
    constructors: list[LimitOrderConstructor]
    committed: bool = False


async def make_constructor(state: SessionState, request: LimitOrderRequest) -> LimitOrderConstructor:
    async with state.read() as view:
        market = resolve_market(view, request.market)
    return LimitOrderConstructor.from_market(market, request)


async def make_constructors(
    state: SessionState,
    requests: Sequence[LimitOrderRequest],
) -> list[LimitOrderConstructor]:
    return [await make_constructor(state, request) for request in requests]


async def sign_limit_order(
    state: SessionState,
    constructor: LimitOrderConstructor,
    current_time: int,
    index: int,
    affiliate: Optional[str],
) -> tuple[PlaceLimitOrderVariables, PayloadNonces]:
    """Fully sign sub-order *index* of a batch built at *current_time*."""
    variables = constructor.graphql_variables(current_time, index, affiliate)
    nonces = await limit_order_nonces(
        state,
        constructor.source.asset,
        constructor.destination,
        current_time,
        index,
    )
    signer = await session_signer(state)

    variables.payload.blockchain_signatures = await blockchain_signatures(
        signer,
        constructor.market,
        constructor.source,
        constructor.destination,
        [nonces],
    )
    variables.signature = await sign_request(signer, PLACE_LIMIT_ORDER, variables)
    return variables, nonces


async def signed_limit_orders(
    state: SessionState,
    constructors: Sequence[LimitOrderConstructor],
    current_time: int,
    affiliate: Optional[str] = None,
) -> SignedLimitOrders:
    """Sign every sub-order in order and batch them into one mutation."""
    signed: list[PlaceLimitOrderVariables] = []
    used: list[PayloadNonces] = []
    for index, constructor in enumerate(constructors):
        variables, nonces = await sign_limit_order(
            state, constructor, current_time, index, affiliate
        )
        signed.append(variables)
        used.append(nonces)

    body = limit_orders_mutation(signed)
    logger.info(
        "limit_orders.signed",
        count=len(signed),
        markets=[constructor.market.name for constructor in constructors],
        timestamp=current_time,
    )
    return SignedLimitOrders(body=body, nonces=used, constructors=list(constructors))
