"""Resting-order snapshot for one market, split into Sell (offers base) and Buy (offers quote)."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

import structlog

from dexmaker.models import LimitOrder, Market

log = structlog.get_logger(__name__)


def filter_by_asset(orders: Iterable[LimitOrder], asset_id: str) -> list[LimitOrder]:
    """Orders whose sell price offers `asset_id`."""
    return [o for o in orders if o.sell_price.base.asset_id == asset_id]


def filter_by_seller(orders: Iterable[LimitOrder], seller: str) -> list[LimitOrder]:
    return [o for o in orders if o.seller == seller]


def orders_amount(orders: Iterable[LimitOrder]) -> int:
    return sum(o.for_sale for o in orders)


class OrderBook:
    """Immutable snapshot. Input orders must already belong to `market`."""

    __slots__ = ("market", "sell", "buy")

    def __init__(self, market: Market, sell: list[LimitOrder], buy: list[LimitOrder]) -> None:
        self.market = market
        self.sell = tuple(sell)
        self.buy = tuple(buy)

    @classmethod
    def from_orders(cls, orders: Iterable[LimitOrder], market: Market) -> OrderBook:
        sell: list[LimitOrder] = []
        buy: list[LimitOrder] = []
        for order in orders:
            if order.sell_price.base.asset_id == market.base.id:
                sell.append(order)
            else:
                buy.append(order)
        return cls(market, sell, buy)

    @property
    def orders(self) -> list[LimitOrder]:
        return [*self.sell, *self.buy]

    @property
    def sell_amount(self) -> int:
        """Base asset committed to resting sell orders."""
        return orders_amount(self.sell)

    @property
    def buy_amount(self) -> int:
        """Quote asset committed to resting buy orders."""
        return orders_amount(self.buy)

    def filter_by_seller(self, seller: str) -> OrderBook:
        return OrderBook(self.market, filter_by_seller(self.sell, seller), filter_by_seller(self.buy, seller))

    def __len__(self) -> int:
        return len(self.sell) + len(self.buy)

    def log(self, logger=None) -> None:
        """Log both sides, prices as quote per base (buy prices inverted)."""
        logger = logger or log
        for side, orders, inverse in (("SELL", self.sell, False), ("BUY", self.buy, True)):
            for o in orders:
                rate = self.market.get_rate(o.sell_price)
                if inverse and rate:
                    rate = Decimal(1) / rate
                logger.info(
                    "resting_order",
                    side=side,
                    order_id=o.id,
                    price=f"{rate:.6f}",
                    for_sale=o.for_sale,
                    deferred_fee=o.deferred_fee,
                )
