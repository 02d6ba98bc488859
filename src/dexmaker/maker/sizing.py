"""Order sizing: available funds, fee reserve, per-side cap, spread ladder."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterator

import structlog

from dexmaker.config.settings import MarketConfig
from dexmaker.models import AssetAmount, LimitOrderCreate, Market, Price
from dexmaker.orderbook import OrderBook

log = structlog.get_logger(__name__)

ORDER_AMOUNT_THRESHOLD = 10  # smallest units; smaller orders are not created


def reserve_fee(balance: Decimal, fee: Decimal, precision: int) -> Decimal:
    """balance - fee (in smallest units, truncated); never below zero."""
    fee_units = Decimal(int(fee.scaleb(precision)))
    if balance > fee_units:
        return balance - fee_units
    return Decimal(0)


def ladder_spreads(spread: Decimal, step: Decimal, count: int) -> Iterator[Decimal]:
    """Spread of the i-th order pair: spread + i * step."""
    for i in range(count):
        yield spread + step * i


def build_orders(
    market: Market,
    price: Price,
    cfg: MarketConfig,
    *,
    seller: str,
    base_balance: int,
    quote_balance: int,
    own_orders: OrderBook,
    expiration: datetime,
    fee_reserve: Decimal = Decimal(0),
    fee_asset: str = "",
) -> list[LimitOrderCreate]:
    """
    Laddered sell/buy orders around `price`.

    Funds locked in `own_orders` count as available since those orders are
    replaced. Buy-side volume is expressed in base units so both sides share
    the configured `amount` cap.
    """
    price = market.oriented(price)
    if not price.valid():
        return []
    # base smallest units per quote smallest unit
    rate = Decimal(price.base.amount) / Decimal(price.quote.amount)

    base_available = Decimal(base_balance + own_orders.sell_amount)
    quote_available = Decimal(quote_balance + own_orders.buy_amount)

    if fee_reserve:
        if market.base.id == fee_asset:
            base_available = reserve_fee(base_available, fee_reserve, market.base.precision)
        if market.quote.id == fee_asset:
            quote_available = reserve_fee(quote_available, fee_reserve, market.quote.precision)

    quote_available *= rate
    limit = Decimal(market.base.amount(cfg.amount).amount)
    base_limit = min(limit, base_available)
    quote_limit = min(limit, quote_available)

    sell_volume = base_limit / cfg.order_count
    buy_volume = quote_limit / cfg.order_count
    log.info("order_volume", market=market.display_name, sell=str(sell_volume), buy=str(buy_volume))

    orders: list[LimitOrderCreate] = []
    spreads = ladder_spreads(Decimal(str(cfg.spread)), Decimal(str(cfg.spread_step)), cfg.order_count)
    for spread in spreads:
        spread_value = 1 + spread / 2

        sell_amount = int(sell_volume)
        recv_amount = int(sell_volume / rate * spread_value)
        if sell_amount > ORDER_AMOUNT_THRESHOLD and recv_amount > ORDER_AMOUNT_THRESHOLD:
            log.debug("sell_order", sell=sell_amount, recv=recv_amount, spread=str(spread))
            orders.append(
                LimitOrderCreate(
                    seller=seller,
                    amount_to_sell=AssetAmount(asset_id=market.base.id, amount=sell_amount),
                    min_to_receive=AssetAmount(asset_id=market.quote.id, amount=recv_amount),
                    expiration=expiration,
                )
            )

        sell_amount = int(buy_volume / rate / spread_value)
        recv_amount = int(buy_volume)
        if sell_amount > ORDER_AMOUNT_THRESHOLD and recv_amount > ORDER_AMOUNT_THRESHOLD:
            log.debug("buy_order", sell=sell_amount, recv=recv_amount, spread=str(spread))
            orders.append(
                LimitOrderCreate(
                    seller=seller,
                    amount_to_sell=AssetAmount(asset_id=market.quote.id, amount=sell_amount),
                    min_to_receive=AssetAmount(asset_id=market.base.id, amount=recv_amount),
                    expiration=expiration,
                )
            )

    return orders
