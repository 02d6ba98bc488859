from dexmaker.maker.engine import MarketMaker
from dexmaker.maker.service import MarketMakerService, build_ledger, build_price_factory
from dexmaker.maker.sizing import ORDER_AMOUNT_THRESHOLD, build_orders, ladder_spreads, reserve_fee

__all__ = [
    "MarketMaker",
    "MarketMakerService",
    "build_ledger",
    "build_price_factory",
    "ORDER_AMOUNT_THRESHOLD",
    "build_orders",
    "ladder_spreads",
    "reserve_fee",
]
