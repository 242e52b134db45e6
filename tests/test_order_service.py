"""Tests for orders/service.py."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from core.errors import InvalidNonce, MissingNoncePool, SigningUnavailable, Stage, UnknownMarket
from core.state import SessionState
from models.nonce import Nonce, PayloadNonces
from models.order import BuyOrSell, LimitOrderRequest, MarketOrderRequest
from orders.service import OrderSigningService

from conftest import NONCE_POOLS, FakeSigner

NOW = 1_700_000_000_000


def _limit(market: str = "eth_btc", **kwargs) -> LimitOrderRequest:
    fields = dict(market=market, buy_or_sell=BuyOrSell.SELL, amount=Decimal("1"), price=Decimal("0.05"))
    fields.update(kwargs)
    return LimitOrderRequest(**fields)


async def _pools(state: SessionState, *assets: str) -> dict[str, tuple[int, ...]]:
    async with state.read() as view:
        return {asset: view.asset_nonce_pool(asset) for asset in assets}


class TestOrderSigningService:

    @pytest.fixture
    def service(self, state: SessionState) -> OrderSigningService:
        return OrderSigningService(state, affiliate="dev", clock=lambda: NOW)

    # ── Builds ───────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_limit_orders_use_injected_clock(self, service: OrderSigningService) -> None:
        signed = await service.limit_orders([_limit(), _limit("eth_usdc", price=Decimal("2000"))])
        assert signed.body.variables["payload0"]["timestamp"] == NOW
        assert signed.body.variables["payload1"]["timestamp"] == NOW
        assert signed.body.variables["affiliate1"] == "dev"

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, service: OrderSigningService) -> None:
        with pytest.raises(ValueError):
            await service.limit_orders([])

    @pytest.mark.asyncio
    async def test_market_order(self, service: OrderSigningService) -> None:
        signed = await service.market_order(MarketOrderRequest(market="eth_btc", amount=Decimal("1")))
        assert signed.body.operation_name == "PlaceMarketOrder"
        assert len(signed.nonces) == 6

    @pytest.mark.asyncio
    async def test_errors_propagate_with_stage(self, service: OrderSigningService) -> None:
        with pytest.raises(UnknownMarket) as info:
            await service.limit_orders([_limit(), _limit("gas_btc")])
        assert info.value.stage == Stage.MARKET_RESOLUTION

    @pytest.mark.asyncio
    async def test_default_affiliate_from_settings(self, state: SessionState) -> None:
        service = OrderSigningService(state, clock=lambda: NOW)
        signed = await service.limit_orders([_limit()])
        assert signed.body.variables["affiliate0"] is None

    # ── Commit ───────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_commit_limit_orders(self, service: OrderSigningService, state: SessionState) -> None:
        signed = await service.limit_orders([_limit()])
        assert await _pools(state, "eth", "btc") == {"eth": (10, 11), "btc": (20, 21, 22)}

        assert await service.commit(signed) is True
        assert signed.committed is True
        assert await _pools(state, "eth", "btc") == {"eth": (10,), "btc": (20, 21)}

    @pytest.mark.asyncio
    async def test_commit_is_once_per_request(self, service: OrderSigningService, state: SessionState) -> None:
        signed = await service.limit_orders([_limit()])
        assert await service.commit(signed) is True
        assert await service.commit(signed) is False
        assert await _pools(state, "eth", "btc") == {"eth": (10,), "btc": (20, 21)}

    @pytest.mark.asyncio
    async def test_concurrent_commits(self, service: OrderSigningService) -> None:
        signed = await service.limit_orders([_limit()])
        results = await asyncio.gather(service.commit(signed), service.commit(signed))
        assert sorted(results) == [False, True]

    @pytest.mark.asyncio
    async def test_market_commit_consumes_every_combination(
        self, service: OrderSigningService, state: SessionState
    ) -> None:
        signed = await service.market_order(MarketOrderRequest(market="eth_btc", amount=Decimal("1")))
        await service.commit(signed)
        # drained pools are refilled with the next nonce
        assert await _pools(state, "eth", "btc") == {"eth": (12,), "btc": (23,)}

    @pytest.mark.asyncio
    async def test_market_commit_settled_subset(
        self, service: OrderSigningService, state: SessionState
    ) -> None:
        signed = await service.market_order(MarketOrderRequest(market="eth_btc", amount=Decimal("1")))
        settled = [
            PayloadNonces(nonce_from=Nonce.of(10), nonce_to=Nonce.of(20), order_nonce=Nonce.of(NOW % 2**32))
        ]
        await service.commit(signed, settled=settled)
        assert await _pools(state, "eth", "btc") == {"eth": (11,), "btc": (21, 22)}

    @pytest.mark.asyncio
    async def test_failed_build_leaves_pools(self, markets, make_signer) -> None:
        state = SessionState(
            markets=markets,
            signer=make_signer(payload_key=False),
            asset_nonces=NONCE_POOLS,
        )
        service = OrderSigningService(state, clock=lambda: NOW)
        with pytest.raises(SigningUnavailable):
            await service.limit_orders([_limit()])
        assert await _pools(state, "eth", "btc") == {"eth": (10, 11), "btc": (20, 21, 22)}

    @pytest.mark.asyncio
    async def test_commit_after_pools_replaced(
        self, service: OrderSigningService, state: SessionState
    ) -> None:
        signed = await service.limit_orders([_limit()])
        await state.replace_nonce_pools({"eth": [50]})
        with pytest.raises(MissingNoncePool):
            await service.commit(signed)
        assert signed.committed is False
        assert await _pools(state, "eth") == {"eth": (50,)}

    @pytest.mark.asyncio
    async def test_signer_sees_each_request_once(self, service: OrderSigningService, signer: FakeSigner) -> None:
        await service.limit_orders([_limit(), _limit()])
        assert len(signer.canonical_strings) == 2

    @pytest.mark.asyncio
    async def test_pool_exhaustion_is_typed(self, markets, signer: FakeSigner) -> None:
        state = SessionState(
            markets=markets,
            signer=signer,
            asset_nonces={"eth": [2**32 - 2], "btc": [20]},
        )
        service = OrderSigningService(state, clock=lambda: NOW)
        signed = await service.limit_orders([_limit()])
        assert signed.nonces[0].nonce_from == Nonce.of(2**32 - 2)

        with pytest.raises(InvalidNonce) as info:
            await service.commit(signed)
        assert info.value.stage == Stage.NONCE_RESOLUTION
        assert signed.committed is False
        assert await _pools(state, "eth", "btc") == {"eth": (2**32 - 2,), "btc": (20,)}
