"""Market maker - periodic reconciliation of the account's orders against a reference price."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Sequence

import structlog

from dexmaker.config.settings import MarketConfig
from dexmaker.errors import ConfigError, LedgerError
from dexmaker.ledger import AssetCache, DatabaseAPI, LedgerClient
from dexmaker.maker.sizing import build_orders
from dexmaker.models import CORE_ASSET_ID, Account, AssetAmount, LimitOrderCancel, Market, Operation, Price
from dexmaker.orderbook import OrderBook
from dexmaker.pricing import PriceProvider, PriceProviderFactory

log = structlog.get_logger(__name__)

ORDER_BOOK_DEPTH = 50


class MarketMaker:
    """
    One market, one ticker thread. Each tick: read price, apply the
    threshold/expiry hysteresis, then (under the shared balance lock) refresh
    balances and replace all own orders with one cancel+create transaction.
    """

    def __init__(
        self,
        cfg: MarketConfig,
        ledger: LedgerClient,
        factory: PriceProviderFactory | None,
        *,
        account_name: str,
        keys: Sequence[str],
        balance_lock: threading.Lock,
        fee_reserve: Decimal = Decimal(0),
        fee_asset: str = CORE_ASSET_ID,
        update_interval_sec: float = 3.0,
        order_book_depth: int = ORDER_BOOK_DEPTH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cfg = cfg
        self.ledger = ledger
        self.factory = factory
        self.account_name = account_name
        self.keys = list(keys)
        self.balance_lock = balance_lock
        self.fee_reserve = fee_reserve
        self.fee_asset = fee_asset
        self.update_interval_sec = update_interval_sec
        self.order_book_depth = order_book_depth
        self.clock = clock
        self.order_duration = timedelta(seconds=cfg.expiration)
        self.log = log.bind(base=cfg.base, quote=cfg.quote)

        self.db: DatabaseAPI | None = None
        self.account: Account | None = None
        self.market: Market | None = None
        self.price_provider: PriceProvider | None = None
        self.base_balance = 0
        self.quote_balance = 0

        # Mutable, written only inside the tick critical section
        self.last_rate = Decimal(0)
        self.last_update = 0.0

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def display_name(self) -> str:
        return self.market.display_name if self.market else self.cfg.display_name

    def load_objects(self) -> None:
        """Bind the database API and resolve the account and both assets."""
        self.db = self.ledger.database()
        self.account = self.db.get_account_by_name(self.account_name)
        assets = AssetCache(self.db)
        self.market = Market(base=assets.get_by_symbol(self.cfg.base), quote=assets.get_by_symbol(self.cfg.quote))

    def update_balances(self) -> None:
        balances = {
            b.asset_id: b
            for b in self.db.get_account_balances(self.account.id, [self.market.base.id, self.market.quote.id])
        }
        base = balances.get(self.market.base.id, AssetAmount(asset_id=self.market.base.id))
        quote = balances.get(self.market.quote.id, AssetAmount(asset_id=self.market.quote.id))
        self.base_balance = base.amount
        self.quote_balance = quote.amount
        self.log.info(
            "balances",
            base=str(self.market.base.to_display(base)),
            quote=str(self.market.quote.to_display(quote)),
        )

    def load_order_book(self) -> OrderBook:
        """Own resting orders on this market."""
        orders = self.db.get_limit_orders(self.market.base.id, self.market.quote.id, self.order_book_depth)
        book = OrderBook.from_orders(orders, self.market)
        self.log.debug("order_book", sell=len(book.sell), buy=len(book.buy))
        return book.filter_by_seller(self.account.id)

    def create_cancel_orders(self, book: OrderBook) -> list[LimitOrderCancel]:
        return [
            LimitOrderCancel(order=o.id, fee_paying_account=o.seller)
            for o in book.filter_by_seller(self.account.id).orders
        ]

    def broadcast(self, ops: Sequence[Operation]) -> str:
        return self.ledger.sign_and_broadcast(self.keys, self.fee_asset, ops)

    def cancel_orders(self) -> list[LimitOrderCancel]:
        """Cancel every own resting order on this market. Raises LedgerError."""
        book = self.load_order_book()
        book.log(self.log)
        ops = self.create_cancel_orders(book)
        if ops:
            self.broadcast(ops)
            self.log.info("orders_cancelled", count=len(ops))
        return ops

    def make_market(self, now: float | None = None) -> list[Operation]:
        """One reconciliation tick. Returns the operations submitted (empty when skipped)."""
        now = self.clock() if now is None else now
        try:
            price = self.price_provider.get_price()
        except Exception as e:
            self.log.exception("price_provider_failed", error=str(e))
            price = Price()
        rate = self.market.get_rate(price)

        # never keep orders up without a reference price
        if rate == 0:
            self.log.error("price_unavailable")
            try:
                return list(self.cancel_orders())
            except LedgerError as e:
                self.log.error("cancel_orders_failed", error=str(e))
                return []

        self.log.info("price", rate=f"{rate:.8f}", inverse=f"{1 / rate:.8f}")
        change = abs(self.last_rate - rate) / rate

        # refresh at half the order lifetime so orders never expire on the book
        due = self.last_update + self.order_duration.total_seconds() / 2
        if change < Decimal(str(self.cfg.threshold)) and due > now:
            self.log.debug("price_within_threshold", change=f"{change:.6f}")
            return []

        try:
            book = self.load_order_book()
        except LedgerError as e:
            self.log.error("order_book_failed", error=str(e))
            return []

        with self.balance_lock:
            try:
                self.update_balances()
            except LedgerError as e:
                self.log.error("balance_update_failed", error=str(e))

            cancel_ops = self.create_cancel_orders(book)
            expiration = datetime.fromtimestamp(now, tz=timezone.utc) + self.order_duration
            create_ops = build_orders(
                self.market,
                price,
                self.cfg,
                seller=self.account.id,
                base_balance=self.base_balance,
                quote_balance=self.quote_balance,
                own_orders=book,
                expiration=expiration,
                fee_reserve=self.fee_reserve,
                fee_asset=self.fee_asset,
            )
            ops: list[Operation] = [*cancel_ops, *create_ops]

            if ops:
                try:
                    tx_id = self.broadcast(ops)
                    self.log.info("market_updated", cancelled=len(cancel_ops), created=len(create_ops), tx_id=tx_id)
                except LedgerError as e:
                    self.log.error(
                        "market_update_failed",
                        market=self.display_name,
                        cancelled=len(cancel_ops),
                        created=len(create_ops),
                        error=str(e),
                    )

            self.last_rate = rate
            self.last_update = now
        return ops

    def _worker(self) -> None:
        while not self._stop.wait(self.update_interval_sec):
            try:
                self.make_market()
            except Exception as e:
                self.log.exception("tick_failed", error=str(e))

    def initialize(self) -> None:
        """Resolve market objects, read balances, bind the price provider."""
        self.load_objects()
        self.update_balances()
        if self.factory is None:
            raise ConfigError("No price provider configured")
        self.price_provider = self.factory.get_provider(self.market)

    def start(self) -> None:
        self.initialize()
        self._stop.clear()
        self._thread = threading.Thread(target=self._worker, name=f"maker-{self.display_name}", daemon=True)
        self._thread.start()
        self.log.info("maker_started", interval_sec=self.update_interval_sec)

    def stop(self, timeout: float | None = None) -> None:
        """Stop ticking. An in-flight tick completes."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
