"""Shared fixtures: in-memory ledger, static price source, assets and markets."""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from dexmaker.config.settings import MarketConfig
from dexmaker.errors import LedgerError
from dexmaker.maker.engine import MarketMaker
from dexmaker.models import (
    Account,
    Asset,
    AssetAmount,
    BitAssetData,
    LimitOrder,
    LimitOrderCreate,
    Market,
    Price,
)
from dexmaker.pricing import PriceProvider, PriceProviderFactory

ACCOUNT = Account(id="1.2.17", name="maker")
OTHER_ACCOUNT = "1.2.99"

OTN = Asset(id="1.3.0", symbol="OTN", precision=8)
BTC = Asset(id="1.3.1", symbol="BTC", precision=8)
ETH = Asset(id="1.3.2", symbol="ETH", precision=8)
USD = Asset(id="1.3.3", symbol="USD", precision=4)


class FakeLedger:
    """LedgerClient + DatabaseAPI over dicts. Records every broadcast attempt."""

    def __init__(
        self,
        assets: list[Asset] | None = None,
        balances: dict[str, int] | None = None,
        orders: list[LimitOrder] | None = None,
        bitassets: dict[str, BitAssetData] | None = None,
    ) -> None:
        self.assets = {a.symbol: a for a in (assets or [OTN, BTC, ETH, USD])}
        self.balances = dict(balances or {})
        self.orders = list(orders or [])
        self.bitassets = dict(bitassets or {})
        self.broadcasts: list[list] = []
        self.fail_broadcast = False
        self.fail_balances = False
        self.fail_database = False
        self.closed = False

    def database(self) -> FakeLedger:
        if self.fail_database:
            raise LedgerError("database api unavailable")
        return self

    def get_account_by_name(self, name: str) -> Account:
        if name != ACCOUNT.name:
            raise LedgerError(f"Account '{name}' not found")
        return ACCOUNT

    def lookup_asset_symbols(self, symbols):
        return [self.assets.get(s) for s in symbols]

    def get_account_balances(self, account_id, asset_ids):
        if self.fail_balances:
            raise LedgerError("balances unavailable")
        return [AssetAmount(asset_id=a, amount=self.balances.get(a, 0)) for a in asset_ids]

    def get_limit_orders(self, base_id, quote_id, limit):
        return self.orders[:limit]

    def get_bitasset_data(self, bitasset_data_id):
        if bitasset_data_id not in self.bitassets:
            raise LedgerError(f"Bitasset data {bitasset_data_id} not found")
        return self.bitassets[bitasset_data_id]

    def sign_and_broadcast(self, keys, fee_asset_id, operations):
        self.broadcasts.append(list(operations))
        if self.fail_broadcast:
            raise LedgerError("broadcast rejected")
        return f"tx{len(self.broadcasts)}"

    def close(self) -> None:
        self.closed = True

    def created(self, batch: int = -1) -> list[LimitOrderCreate]:
        return [op for op in self.broadcasts[batch] if isinstance(op, LimitOrderCreate)]


class StaticPriceProvider(PriceProvider):
    def __init__(self, price: Price) -> None:
        self.price = price

    def get_price(self) -> Price:
        return self.price


class StaticPriceFactory(PriceProviderFactory):
    """Every market shares one mutable provider."""

    def __init__(self, price: Price | None = None) -> None:
        self.provider = StaticPriceProvider(price or Price())

    def set(self, price: Price) -> None:
        self.provider.price = price

    def get_provider(self, market: Market) -> StaticPriceProvider:
        return self.provider


def usd_price(rate: int | str) -> Price:
    """1 BTC = `rate` USD, in smallest units."""
    return Market(base=BTC, quote=USD).new_price(10**8, int(Decimal(str(rate)) * 10**4))


def limit_order(order_id: str, seller: str, sell: Asset, for_sale: int, receive: Asset, receive_amount: int) -> LimitOrder:
    return LimitOrder(
        id=order_id,
        seller=seller,
        for_sale=for_sale,
        sell_price=Price(
            base=AssetAmount(asset_id=sell.id, amount=for_sale),
            quote=AssetAmount(asset_id=receive.id, amount=receive_amount),
        ),
    )


@pytest.fixture
def btc_usd() -> Market:
    return Market(base=BTC, quote=USD)


@pytest.fixture
def market_cfg() -> MarketConfig:
    return MarketConfig(
        base="BTC",
        quote="USD",
        spread=0.02,
        threshold=0.02,
        expiration=3600,
        amount=1.0,
        orders=2,
        spread_step=0.01,
    )


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger(balances={BTC.id: 2 * 10**8, USD.id: 500 * 10**4})


@pytest.fixture
def prices() -> StaticPriceFactory:
    return StaticPriceFactory(usd_price(100))


@pytest.fixture
def maker(market_cfg, ledger, prices) -> MarketMaker:
    """Initialized maker without a running ticker."""
    mm = MarketMaker(
        market_cfg,
        ledger,
        prices,
        account_name=ACCOUNT.name,
        keys=["5KQwrPbwdL6PhXujxW37FSSQZ1JiwsST4cqQzDeyXtP79zkvFD3"],
        balance_lock=threading.Lock(),
        update_interval_sec=3600,
    )
    mm.initialize()
    return mm
