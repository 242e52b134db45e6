"""Unit tests for the models package."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from core.errors import InvalidAmount, InvalidNonce, Stage
from models import (
    Asset,
    AssetPrecision,
    Blockchain,
    CancellationPolicy,
    CancellationPolicyKind,
    LimitOrderRequest,
    Market,
    Nonce,
    OrderRate,
    Rate,
)


# ──────────────────────────────────────────────
# Market
# ──────────────────────────────────────────────

class TestMarket:

    def test_name_joins_tickers(self):
        assert Market.of(Asset.ETH, 8, Asset.BTC, 8).name == "eth_btc"

    def test_blockchains_distinct_in_asset_order(self):
        assert Market.of(Asset.ETH, 8, Asset.BTC, 8).blockchains() == [
            Blockchain.ETHEREUM,
            Blockchain.BITCOIN,
        ]
        assert Market.of(Asset.ETH, 8, Asset.USDC, 6).blockchains() == [Blockchain.ETHEREUM]
        assert Market.of(Asset.NEO, 0, Asset.ETH, 8).blockchains() == [
            Blockchain.NEO,
            Blockchain.ETHEREUM,
        ]

    def test_invert_swaps_sides(self):
        market = Market.of(Asset.ETH, 8, Asset.USDC, 6)
        inverted = market.invert()
        assert inverted.asset_a == AssetPrecision(Asset.USDC, 6)
        assert inverted.asset_b == AssetPrecision(Asset.ETH, 8)
        assert inverted.inverted is True
        assert inverted.name == "usdc_eth"

    def test_double_invert_is_identity(self):
        market = Market.of(Asset.ETH, 8, Asset.BTC, 8)
        assert market.invert().invert() == market

    def test_asset_chains(self):
        assert Asset.USDC.blockchain == Blockchain.ETHEREUM
        assert Asset.BTC.blockchain == Blockchain.BITCOIN
        assert Asset.GAS.blockchain == Blockchain.NEO

    def test_asset_ids_unique(self):
        assert len({asset.asset_id for asset in Asset}) == len(Asset)


# ──────────────────────────────────────────────
# AssetPrecision.with_amount
# ──────────────────────────────────────────────

class TestWithAmount:

    side = AssetPrecision(Asset.USDC, 6)

    def test_valid_amount(self):
        amount = self.side.with_amount("12.5")
        assert amount.asset == Asset.USDC
        assert amount.amount == Decimal("12.500000")
        assert amount.to_encoded() == 1_250_000_000

    def test_accepts_decimal(self):
        assert self.side.with_amount(Decimal("1")).amount == Decimal("1")

    def test_zero_allowed(self):
        assert self.side.with_amount("0").to_encoded() == 0

    def test_wire_form(self):
        assert self.side.with_amount("3.25").to_wire() == {
            "amount": "3.250000",
            "currency": "usdc",
        }

    @pytest.mark.parametrize("raw", ["-1", "abc", "NaN", "Infinity", ""])
    def test_rejects_unrepresentable(self, raw):
        with pytest.raises(InvalidAmount):
            self.side.with_amount(raw)

    def test_rejects_excess_precision(self):
        with pytest.raises(InvalidAmount, match="precision"):
            self.side.with_amount("0.0000001")

    def test_rejects_digits_beyond_encoding_precision(self):
        side = Market.of(Asset.ETH, 18, Asset.BTC, 8).asset_a
        with pytest.raises(InvalidAmount, match="encoding precision"):
            side.with_amount("0.000000001")

    def test_high_precision_market_encodes_exactly(self):
        amount = Market.of(Asset.ETH, 18, Asset.BTC, 8).asset_a.with_amount("0.12345678")
        assert amount.to_encoded() == 12_345_678
        assert amount.amount == Decimal("0.12345678")

    def test_trailing_zeros_are_not_excess_precision(self):
        assert self.side.with_amount("1.50000000").amount == Decimal("1.5")

    def test_rejects_overflow(self):
        with pytest.raises(InvalidAmount, match="overflow"):
            self.side.with_amount("1e12")

    def test_invalid_amount_stage(self):
        with pytest.raises(InvalidAmount) as info:
            self.side.with_amount("-5")
        assert info.value.stage == Stage.MARKET_RESOLUTION


# ──────────────────────────────────────────────
# Nonce / Rate
# ──────────────────────────────────────────────

class TestNonce:

    def test_value_encoding(self):
        assert Nonce.of(42).encoded() == 42
        assert not Nonce.of(42).is_crosschain

    def test_crosschain_sentinel(self):
        assert Nonce.CROSSCHAIN.is_crosschain
        assert Nonce.CROSSCHAIN.encoded() == 0xFFFFFFFF
        assert str(Nonce.CROSSCHAIN) == "Crosschain"

    @pytest.mark.parametrize("value", [-1, 2**32])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError, match="u32"):
            Nonce.of(value)

    def test_out_of_range_is_nonce_resolution_failure(self):
        with pytest.raises(InvalidNonce) as info:
            Nonce.of(2**32)
        assert info.value.stage == Stage.NONCE_RESOLUTION

    def test_pool_nonce_reserves_crosschain_value(self):
        assert Nonce.pooled(2**32 - 2).encoded() == 2**32 - 2
        assert Nonce.of(2**32 - 1).encoded() == Nonce.CROSSCHAIN.encoded()
        with pytest.raises(InvalidNonce, match="pool nonce"):
            Nonce.pooled(2**32 - 1)


class TestRate:

    def test_sentinels(self):
        assert Rate.MIN_ORDER.value == 0
        assert Rate.MAX_ORDER.value == 2**64 - 1
        assert Rate.fee_rate() is Rate.MIN_ORDER

    def test_order_rate_invert(self):
        assert OrderRate.parse("4").invert().value == Decimal("0.25")

    def test_order_rate_wire(self):
        assert OrderRate.parse("0.0250").to_wire() == "0.025"
        assert OrderRate.parse("100").to_wire() == "100"

    @pytest.mark.parametrize("raw", ["0", "-2", "x"])
    def test_order_rate_rejects(self, raw):
        with pytest.raises(InvalidAmount):
            OrderRate.parse(raw)


# ──────────────────────────────────────────────
# CancellationPolicy / requests
# ──────────────────────────────────────────────

class TestCancellationPolicy:

    def test_default_is_gtc_without_cancel_at(self):
        policy = CancellationPolicy()
        assert policy.kind == CancellationPolicyKind.GOOD_TIL_CANCELLED
        assert policy.cancel_at_value() is None

    def test_good_til_time_renders_utc(self):
        when = datetime(2026, 10, 18, 12, 30, tzinfo=timezone.utc)
        assert CancellationPolicy.good_til_time(when).cancel_at_value() == "2026-10-18T12:30:00Z"

    def test_good_til_time_converts_offsets(self):
        when = datetime(2026, 10, 18, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        assert CancellationPolicy.good_til_time(when).cancel_at_value() == "2026-10-18T12:30:00Z"

    def test_gtt_requires_timestamp(self):
        with pytest.raises(ValidationError, match="cancel_at"):
            CancellationPolicy(kind=CancellationPolicyKind.GOOD_TIL_TIME)

    def test_other_policies_reject_timestamp(self):
        with pytest.raises(ValidationError):
            CancellationPolicy(
                kind=CancellationPolicyKind.FILL_OR_KILL,
                cancel_at=datetime.now(timezone.utc),
            )


class TestLimitOrderRequest:

    def test_market_name_normalized(self):
        request = LimitOrderRequest(
            market=" ETH_BTC ",
            buy_or_sell="SELL",
            amount=Decimal("1"),
            price=Decimal("0.05"),
        )
        assert request.market == "eth_btc"
        assert request.allow_taker is True

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError, match="price"):
            LimitOrderRequest(
                market="eth_btc",
                buy_or_sell="BUY",
                amount=Decimal("1"),
                price=Decimal("0"),
            )
