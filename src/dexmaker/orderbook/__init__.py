from dexmaker.orderbook.book import OrderBook, filter_by_asset, filter_by_seller, orders_amount

__all__ = ["OrderBook", "filter_by_asset", "filter_by_seller", "orders_amount"]
