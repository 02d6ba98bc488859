"""Service wiring - ledger, price provider factory and one MarketMaker per configured market."""

from __future__ import annotations

import threading
from typing import Callable

import structlog

from dexmaker.config.settings import Settings
from dexmaker.errors import ConfigError, DexMakerError
from dexmaker.ledger import GrapheneLedger, LedgerClient, NodeRPC, WalletRPC
from dexmaker.maker.engine import MarketMaker
from dexmaker.pricing import FeedPriceProviderFactory, IndexPriceProviderFactory, PriceProviderFactory
from dexmaker.pricing.index_client import IndexClient

log = structlog.get_logger(__name__)


def build_ledger(settings: Settings) -> GrapheneLedger:
    node = NodeRPC(settings.node_url, timeout=settings.rpc_timeout_sec)
    wallet = WalletRPC(
        settings.wallet_url,
        settings.account_name,
        password=settings.wallet_password,
        timeout=settings.rpc_timeout_sec,
    )
    return GrapheneLedger(node, wallet)


def build_price_factory(settings: Settings, ledger: LedgerClient) -> PriceProviderFactory:
    """Select the reference-price source from [price_provider].kind."""
    if settings.price_provider_kind == "index":
        client = IndexClient(settings.index_url)
        try:
            return IndexPriceProviderFactory(
                client,
                bulk_size=settings.index_bulk_size,
                refresh_interval_sec=settings.index_refresh_interval_sec,
            )
        except DexMakerError:
            client.close()
            raise
    return FeedPriceProviderFactory(ledger)


class MarketMakerService:
    """
    Runs one MarketMaker per market. All makers share one balance lock.

    Without a price factory the service can only cancel: starting a maker fails.
    """

    def __init__(
        self,
        settings: Settings,
        ledger: LedgerClient,
        factory: PriceProviderFactory | None = None,
        maker_factory: Callable[..., MarketMaker] = MarketMaker,
    ) -> None:
        markets = settings.markets
        if not markets:
            raise ConfigError("No markets configured")
        if not settings.account_name:
            raise ConfigError("No account configured")
        self.settings = settings
        self.balance_lock = threading.Lock()
        self.makers = [
            maker_factory(
                cfg,
                ledger,
                factory,
                account_name=settings.account_name,
                keys=settings.keys,
                balance_lock=self.balance_lock,
                fee_reserve=settings.fee_reserve,
                fee_asset=settings.fee_asset,
                update_interval_sec=settings.update_interval_sec,
                order_book_depth=settings.order_book_depth,
            )
            for cfg in markets
        ]
        self.started: list[MarketMaker] = []

    def start(self) -> int:
        """Start every maker; a failing market is logged and skipped. Returns the started count."""
        log.info("starting_markets", count=len(self.makers))
        for maker in self.makers:
            try:
                maker.start()
            except DexMakerError as e:
                log.error("market_start_failed", market=maker.display_name, error=str(e))
                continue
            self.started.append(maker)
        log.info("markets_started", started=len(self.started), configured=len(self.makers))
        return len(self.started)

    def stop(self) -> None:
        log.info("stopping_markets")
        for maker in self.started:
            maker.stop()
        self.started = []

    def cancel_all(self) -> int:
        """Cancel own orders on every market once. Returns the number of cancelled orders."""
        total = 0
        for maker in self.makers:
            try:
                maker.load_objects()
                total += len(maker.cancel_orders())
            except DexMakerError as e:
                log.error("cancel_failed", market=maker.display_name, error=str(e))
        return total

    def run_forever(self, stop_event: threading.Event) -> None:
        """Start, block until stop_event is set, stop."""
        if not self.start():
            log.error("no_markets_started")
            return
        try:
            stop_event.wait()
        finally:
            self.stop()
