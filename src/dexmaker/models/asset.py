"""Asset, AssetAmount, Price - ledger value types."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

CORE_ASSET_ID = "1.3.0"


class Asset(BaseModel):
    """Ledger asset descriptor. Amounts are integers in 10**-precision units."""

    id: str
    symbol: str
    precision: int = Field(..., ge=0)
    bitasset_data_id: str | None = None

    @property
    def is_bitasset(self) -> bool:
        return bool(self.bitasset_data_id)

    def amount(self, value: float | Decimal | str) -> AssetAmount:
        """Convert a display value (e.g. 1.5 BTC) into smallest units, truncating."""
        units = Decimal(str(value)).scaleb(self.precision)
        return AssetAmount(asset_id=self.id, amount=int(units))

    def to_display(self, amount: AssetAmount | int) -> Decimal:
        raw = amount.amount if isinstance(amount, AssetAmount) else amount
        return Decimal(raw).scaleb(-self.precision)


class AssetAmount(BaseModel):
    """Integer amount of an asset in its smallest denomination."""

    asset_id: str
    amount: int = Field(0, ge=0)


class Price(BaseModel):
    """Exchange ratio: `base` is worth `quote`."""

    base: AssetAmount = Field(default_factory=lambda: AssetAmount(asset_id=""))
    quote: AssetAmount = Field(default_factory=lambda: AssetAmount(asset_id=""))

    def valid(self) -> bool:
        return self.base.amount > 0 and self.quote.amount > 0

    def inverse(self) -> Price:
        return Price(base=self.quote, quote=self.base)

    def rate(self, base_precision: int, quote_precision: int) -> Decimal:
        """Quote per base in display units. Exact: amounts are converted before dividing."""
        if not self.valid():
            return Decimal(0)
        base = Decimal(self.base.amount).scaleb(-base_precision)
        quote = Decimal(self.quote.amount).scaleb(-quote_precision)
        return quote / base


class Account(BaseModel):
    """Ledger account (only the fields the maker needs)."""

    id: str
    name: str
