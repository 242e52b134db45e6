"""Market: asset pair with per-asset settlement chain and precision."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import Enum

from core.errors import InvalidAmount

# On-chain amounts are unsigned 64-bit integers with 8 implied decimals.
ENCODING_DECIMALS = 8
MAX_ENCODED_AMOUNT = 2**64 - 1


class Blockchain(str, Enum):
    """Settlement chains supported by the exchange."""

    ETHEREUM = "ETH"
    BITCOIN = "BTC"
    NEO = "NEO"


class Asset(str, Enum):
    """Tradable asset, identified by its lowercase ticker."""

    ETH = "eth"
    BAT = "bat"
    OMG = "omg"
    USDC = "usdc"
    USDT = "usdt"
    ZRX = "zrx"
    LINK = "link"
    QNT = "qnt"
    BTC = "btc"
    NEO = "neo"
    GAS = "gas"
    NNN = "nnn"

    @property
    def blockchain(self) -> Blockchain:
        """Chain the asset natively settles on."""
        return _ASSET_CHAINS[self]

    @property
    def asset_id(self) -> int:
        """u16 identifier used in fill-order encodings."""
        return _ASSET_IDS[self]


_ASSET_CHAINS: dict[Asset, Blockchain] = {
    Asset.ETH: Blockchain.ETHEREUM,
    Asset.BAT: Blockchain.ETHEREUM,
    Asset.OMG: Blockchain.ETHEREUM,
    Asset.USDC: Blockchain.ETHEREUM,
    Asset.USDT: Blockchain.ETHEREUM,
    Asset.ZRX: Blockchain.ETHEREUM,
    Asset.LINK: Blockchain.ETHEREUM,
    Asset.QNT: Blockchain.ETHEREUM,
    Asset.BTC: Blockchain.BITCOIN,
    Asset.NEO: Blockchain.NEO,
    Asset.GAS: Blockchain.NEO,
    Asset.NNN: Blockchain.NEO,
}

_ASSET_IDS: dict[Asset, int] = {asset: index for index, asset in enumerate(Asset)}


@dataclass(frozen=True, slots=True)
class AssetAmount:
    """A quantity denominated in a specific asset."""

    asset: Asset
    amount: Decimal
    precision: int

    def to_encoded(self) -> int:
        """Amount as the u64 fixed-point integer used on-chain."""
        return int(self.amount.scaleb(ENCODING_DECIMALS))

    def to_wire(self) -> dict[str, str]:
        return {"amount": format(self.amount, "f"), "currency": self.asset.value}


@dataclass(frozen=True, slots=True)
class AssetPrecision:
    """One side of a market: an asset and the precision it trades at."""

    asset: Asset
    precision: int

    def with_amount(self, amount: str | Decimal) -> AssetAmount:
        """Apply *amount* to this market side.

        Raises
        ------
        InvalidAmount
            If *amount* is not a finite non-negative decimal, has more
            fractional digits than ``precision`` or than the 8-decimal
            on-chain encoding, or overflows the u64 encoding.
        """
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise InvalidAmount(f"Amount {amount!r} is not a decimal number") from exc

        if not value.is_finite():
            raise InvalidAmount(f"Amount {amount!r} is not finite")
        if value < 0:
            raise InvalidAmount(f"Amount {amount!r} is negative")

        exponent = value.normalize().as_tuple().exponent
        if isinstance(exponent, int) and -exponent > self.precision:
            raise InvalidAmount(
                f"Amount {amount!r} exceeds {self.asset.value} precision of {self.precision}"
            )
        if isinstance(exponent, int) and -exponent > ENCODING_DECIMALS:
            raise InvalidAmount(
                f"Amount {amount!r} exceeds the on-chain encoding precision of {ENCODING_DECIMALS}"
            )

        if value.scaleb(ENCODING_DECIMALS) > MAX_ENCODED_AMOUNT:
            raise InvalidAmount(f"Amount {amount!r} overflows the on-chain encoding")

        quantized = value.quantize(Decimal(1).scaleb(-self.precision))
        return AssetAmount(asset=self.asset, amount=quantized, precision=self.precision)


@dataclass(frozen=True, slots=True)
class Market:
    """Canonical ``asset_a``/``asset_b`` market.

    ``inverted`` is set when the market was resolved from its reversed
    name; sides are already swapped in that case.
    """

    asset_a: AssetPrecision
    asset_b: AssetPrecision
    inverted: bool = False

    @classmethod
    def of(cls, asset_a: Asset, precision_a: int, asset_b: Asset, precision_b: int) -> Market:
        return cls(AssetPrecision(asset_a, precision_a), AssetPrecision(asset_b, precision_b))

    @property
    def name(self) -> str:
        return f"{self.asset_a.asset.value}_{self.asset_b.asset.value}"

    def blockchains(self) -> list[Blockchain]:
        """Distinct settlement chains touched by the market, in asset order."""
        chains = [self.asset_a.asset.blockchain]
        if self.asset_b.asset.blockchain not in chains:
            chains.append(self.asset_b.asset.blockchain)
        return chains

    def invert(self) -> Market:
        return replace(
            self,
            asset_a=self.asset_b,
            asset_b=self.asset_a,
            inverted=not self.inverted,
        )
