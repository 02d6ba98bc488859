"""Price provider protocol - pluggable reference-price sources (on-chain feed, external index)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dexmaker.models import Market, Price


class PriceProvider(ABC):
    """Reports the current reference price for one market."""

    @abstractmethod
    def get_price(self) -> Price:
        """Return the price in market orientation, or an invalid Price when unavailable."""
        ...


class PriceProviderFactory(ABC):
    """Creates a PriceProvider per market. Implement for each price source."""

    @abstractmethod
    def get_provider(self, market: Market) -> PriceProvider:
        """Bind a provider to `market`. Raises on configuration problems (e.g. unknown asset)."""
        ...

    def close(self) -> None:
        """Release resources held by the price source."""
