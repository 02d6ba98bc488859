"""Reference price from an external ticker index, with a shared interval-refreshed cache."""

from __future__ import annotations

import time
from decimal import Decimal
from threading import Lock
from typing import Callable

import structlog

from dexmaker.errors import PriceIndexError, UnknownAssetError
from dexmaker.models import Market, Price
from dexmaker.pricing.base import PriceProvider, PriceProviderFactory
from dexmaker.pricing.index_client import CONVERT, IndexClient, Listing, Ticker, map_listings_by_symbol

log = structlog.get_logger(__name__)

DEFAULT_REFRESH_INTERVAL_SEC = 60.0


class TickerCache:
    """
    Symbol -> Ticker cache shared by every market of one factory.
    One bulk fetch per refresh interval covers all tracked symbols; symbols
    missing from the bulk response are fetched individually. Entries are
    replaced one by one and never evicted.
    """

    def __init__(
        self,
        client: IndexClient,
        symbols: dict[str, Listing],
        bulk_size: int = 100,
        interval_sec: float = DEFAULT_REFRESH_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.symbols = symbols
        self.bulk_size = bulk_size
        self.interval_sec = interval_sec
        self.clock = clock
        self._tracked: set[str] = set()
        self._tickers: dict[str, Ticker] = {}
        self._last_updated: float | None = None
        self._lock = Lock()

    def track(self, *symbols: str) -> None:
        """Add symbols and force the next read to refresh."""
        with self._lock:
            self._tracked.update(symbols)
            self._last_updated = None

    @property
    def tracked(self) -> set[str]:
        return set(self._tracked)

    def get_or_refresh(self, symbol: str) -> Ticker | None:
        with self._lock:
            now = self.clock()
            if self._last_updated is None or now - self._last_updated > self.interval_sec:
                self._refresh()
                self._last_updated = now
            return self._tickers.get(symbol)

    def _refresh(self) -> None:
        try:
            bulk = self.client.tickers(limit=self.bulk_size, convert=CONVERT)
        except PriceIndexError as e:
            log.error("tickers_fetch_failed", error=str(e))
            return

        for sym in sorted(self._tracked):
            ticker = bulk.get(sym)
            if ticker is None:
                log.info("ticker_fetch_single", symbol=sym)
                try:
                    ticker = self.client.ticker(self.symbols[sym].id, convert=CONVERT)
                except PriceIndexError as e:
                    log.error("ticker_fetch_failed", symbol=sym, error=str(e))
                    continue
            self._tickers[sym] = ticker


class IndexPriceProviderFactory(PriceProviderFactory):
    """Fetches the symbol listing once at construction (fails fast on error)."""

    def __init__(
        self,
        client: IndexClient,
        bulk_size: int = 100,
        refresh_interval_sec: float = DEFAULT_REFRESH_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        symbols = map_listings_by_symbol(client.listings())
        self.cache = TickerCache(client, symbols, bulk_size, refresh_interval_sec, clock)

    def get_provider(self, market: Market) -> IndexPriceProvider:
        for symbol in (market.base.symbol, market.quote.symbol):
            if symbol not in self.cache.symbols:
                raise UnknownAssetError(symbol, source="price index")
        self.cache.track(market.base.symbol, market.quote.symbol)
        return IndexPriceProvider(market, self.cache)

    def close(self) -> None:
        self.client.close()


class IndexPriceProvider(PriceProvider):
    def __init__(self, market: Market, cache: TickerCache) -> None:
        self.market = market
        self.cache = cache

    def get_price(self) -> Price:
        base_ticker = self.cache.get_or_refresh(self.market.base.symbol)
        quote_ticker = self.cache.get_or_refresh(self.market.quote.symbol)
        if base_ticker is None or quote_ticker is None:
            return Price()

        base_btc = base_ticker.price_in(CONVERT)
        quote_btc = quote_ticker.price_in(CONVERT)
        if not base_btc or not quote_btc:
            return Price()

        # one whole base unit, valued in quote smallest units
        ratio = Decimal(str(base_btc)) / Decimal(str(quote_btc))
        base_amount = 10 ** self.market.base.precision
        quote_amount = int(ratio.scaleb(self.market.quote.precision))
        return self.market.new_price(base_amount, quote_amount)
