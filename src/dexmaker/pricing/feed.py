"""Reference price from on-chain settlement feeds (core asset valued at parity)."""

from __future__ import annotations

import structlog

from dexmaker.errors import LedgerError
from dexmaker.ledger.base import DatabaseAPI, LedgerClient
from dexmaker.models import CORE_ASSET_ID, Asset, AssetAmount, Market, Price
from dexmaker.pricing.base import PriceProvider, PriceProviderFactory

log = structlog.get_logger(__name__)


def core_price(asset: Asset, core_asset_id: str = CORE_ASSET_ID) -> Price:
    """1:1 parity with the core asset, in smallest units."""
    return Price(
        base=AssetAmount(asset_id=asset.id, amount=1),
        quote=AssetAmount(asset_id=core_asset_id, amount=1),
    )


class FeedPriceProviderFactory(PriceProviderFactory):
    def __init__(self, ledger: LedgerClient, core_asset_id: str = CORE_ASSET_ID) -> None:
        self.ledger = ledger
        self.core_asset_id = core_asset_id

    def get_provider(self, market: Market) -> FeedPriceProvider:
        return FeedPriceProvider(self.ledger.database(), market, self.core_asset_id)


class FeedPriceProvider(PriceProvider):
    """Combines each side's core-denominated price into one base/quote price."""

    def __init__(self, db: DatabaseAPI, market: Market, core_asset_id: str = CORE_ASSET_ID) -> None:
        self.db = db
        self.market = market
        self.core_asset_id = core_asset_id

    def asset_price(self, asset: Asset) -> Price:
        """Price of `asset` with quote = core asset. Invalid Price on failure."""
        if asset.is_bitasset:
            try:
                data = self.db.get_bitasset_data(asset.bitasset_data_id)
            except LedgerError as e:
                log.error("bitasset_data_failed", symbol=asset.symbol, error=str(e))
                return Price()
            price = data.current_feed.settlement_price
        else:
            price = core_price(asset, self.core_asset_id)

        if price.quote.asset_id != self.core_asset_id:
            return price.inverse()
        return price

    def get_price(self) -> Price:
        base_price = self.asset_price(self.market.base)
        quote_price = self.asset_price(self.market.quote)

        if not base_price.valid() or not quote_price.valid():
            return Price()

        # base asset -> core -> quote asset; amounts stay in smallest units
        return self.market.new_price(
            base_price.base.amount * quote_price.quote.amount,
            base_price.quote.amount * quote_price.base.amount,
        )
