from dexmaker.pricing.base import PriceProvider, PriceProviderFactory
from dexmaker.pricing.feed import FeedPriceProvider, FeedPriceProviderFactory
from dexmaker.pricing.index import IndexPriceProvider, IndexPriceProviderFactory, TickerCache

__all__ = [
    "PriceProvider",
    "PriceProviderFactory",
    "FeedPriceProvider",
    "FeedPriceProviderFactory",
    "IndexPriceProvider",
    "IndexPriceProviderFactory",
    "TickerCache",
]
