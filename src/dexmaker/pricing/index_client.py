"""External ticker index REST client (CoinMarketCap v2 compatible)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field

from dexmaker.errors import PriceIndexError

log = structlog.get_logger(__name__)

DEFAULT_INDEX_URL = "https://api.coinmarketcap.com"
CONVERT = "BTC"


class Listing(BaseModel):
    id: int
    symbol: str
    name: str = ""


class TickerQuote(BaseModel):
    price: float | None = None


class Ticker(BaseModel):
    id: int
    symbol: str
    name: str = ""
    quotes: dict[str, TickerQuote] = Field(default_factory=dict)

    def price_in(self, currency: str = CONVERT) -> float | None:
        quote = self.quotes.get(currency)
        return quote.price if quote else None


def map_listings_by_symbol(listings: list[Listing]) -> dict[str, Listing]:
    return {lst.symbol: lst for lst in listings}


class IndexClient:
    """Listings, bulk tickers and single tickers. Raises PriceIndexError on failure."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_INDEX_URL).rstrip("/")
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._client.get(url, params=params)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PriceIndexError(f"GET {url} failed: {e}") from e
        if not isinstance(body, dict) or "data" not in body:
            raise PriceIndexError(f"GET {url}: unexpected response")
        return body["data"]

    def listings(self) -> list[Listing]:
        data = self._get("/v2/listings/")
        try:
            return [Listing.model_validate(row) for row in data or []]
        except (TypeError, ValueError) as e:
            raise PriceIndexError(f"listings: malformed response: {e}") from e

    def tickers(self, limit: int, convert: str = CONVERT) -> dict[str, Ticker]:
        """Bulk fetch, keyed by symbol."""
        data = self._get("/v2/ticker/", {"limit": limit, "convert": convert})
        rows = data.values() if isinstance(data, dict) else data or []
        result: dict[str, Ticker] = {}
        for row in rows:
            try:
                t = Ticker.model_validate(row)
            except ValueError as e:
                log.warning("skip_ticker", ticker_id=row.get("id"), error=str(e))
                continue
            result[t.symbol] = t
        return result

    def ticker(self, ticker_id: int, convert: str = CONVERT) -> Ticker:
        data = self._get(f"/v2/ticker/{ticker_id}/", {"convert": convert})
        try:
            return Ticker.model_validate(data)
        except ValueError as e:
            raise PriceIndexError(f"ticker {ticker_id}: malformed response: {e}") from e

    def close(self) -> None:
        self._client.close()
