"""Market - a base/quote asset pair."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, model_validator

from dexmaker.models.asset import Asset, AssetAmount, Price


class Market(BaseModel):
    """Trading pair. Prices are quote per base."""

    base: Asset
    quote: Asset

    @model_validator(mode="after")
    def _distinct_assets(self) -> Market:
        if self.base.id == self.quote.id:
            raise ValueError(f"market base and quote are the same asset ({self.base.id})")
        return self

    @property
    def display_name(self) -> str:
        return f"{self.base.symbol}/{self.quote.symbol}"

    def new_price(self, base_amount: int, quote_amount: int) -> Price:
        return Price(
            base=AssetAmount(asset_id=self.base.id, amount=base_amount),
            quote=AssetAmount(asset_id=self.quote.id, amount=quote_amount),
        )

    def matches(self, price: Price) -> bool:
        pair = (price.base.asset_id, price.quote.asset_id)
        return pair in ((self.base.id, self.quote.id), (self.quote.id, self.base.id))

    def get_rate(self, price: Price) -> Decimal:
        """
        Decimal rate of `price`, quote per base of the price itself.
        Reversed prices (base asset = market quote) use swapped precisions.
        Returns 0 for invalid prices or prices on another pair.
        """
        if price.valid():
            if price.base.asset_id == self.base.id and price.quote.asset_id == self.quote.id:
                return price.rate(self.base.precision, self.quote.precision)
            if price.base.asset_id == self.quote.id and price.quote.asset_id == self.base.id:
                return price.rate(self.quote.precision, self.base.precision)
        return Decimal(0)

    def oriented(self, price: Price) -> Price:
        """Return `price` with base = market base (inverting a reversed price)."""
        if price.base.asset_id == self.quote.id:
            return price.inverse()
        return price
