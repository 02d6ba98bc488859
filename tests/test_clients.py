"""Node/wallet JSON-RPC and price index HTTP clients against mocked transports."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from dexmaker.errors import LedgerError, PriceIndexError
from dexmaker.ledger import GrapheneLedger, NodeRPC, WalletRPC
from dexmaker.models import AssetAmount, LimitOrderCancel, LimitOrderCreate
from dexmaker.pricing.index_client import IndexClient

NODE_RESULTS = {
    "get_chain_id": "4018d784",
    "get_account_by_name": {"id": "1.2.17", "name": "maker", "options": {}},
    "lookup_asset_symbols": [
        {"id": "1.3.1", "symbol": "BTC", "precision": 8, "bitasset_data_id": "2.4.1"},
        None,
    ],
    "get_account_balances": [{"amount": "150000000", "asset_id": "1.3.1"}, {"amount": 0, "asset_id": "1.3.3"}],
    "get_limit_orders": [
        {
            "id": "1.7.110",
            "expiration": "2026-10-18T00:00:00",
            "seller": "1.2.17",
            "for_sale": "1000000000000",
            "deferred_fee": 2000000000,
            "sell_price": {
                "base": {"amount": "1000000000000", "asset_id": "1.3.0"},
                "quote": {"amount": 297936749, "asset_id": "1.3.1"},
            },
        }
    ],
    "get_objects": [
        {
            "id": "2.4.1",
            "current_feed": {
                "settlement_price": {
                    "base": {"amount": 1000, "asset_id": "1.3.1"},
                    "quote": {"amount": 5000000, "asset_id": "1.3.0"},
                }
            },
        }
    ],
}


def node_transport(calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        api, method, args = body["params"]
        calls.append((api, method, args))
        return httpx.Response(200, json={"id": body["id"], "jsonrpc": "2.0", "result": NODE_RESULTS[method]})

    return httpx.MockTransport(handler)


@pytest.fixture
def node_calls() -> list:
    return []


@pytest.fixture
def node(node_calls) -> NodeRPC:
    return NodeRPC("http://node/rpc", transport=node_transport(node_calls))


def test_node_queries_parse_ledger_objects(node, node_calls):
    db = node.connect()
    assert db.chain_id == "4018d784"
    assert db.get_account_by_name("maker").id == "1.2.17"

    btc, missing = db.lookup_asset_symbols(["BTC", "NOPE"])
    assert btc.precision == 8 and btc.is_bitasset
    assert missing is None

    balances = db.get_account_balances("1.2.17", ["1.3.1", "1.3.3"])
    assert balances[0] == AssetAmount(asset_id="1.3.1", amount=150_000_000)

    (order,) = db.get_limit_orders("1.3.0", "1.3.1", 50)
    assert order.for_sale == 1_000_000_000_000
    assert order.sell_price.quote.asset_id == "1.3.1"

    data = db.get_bitasset_data("2.4.1")
    assert data.current_feed.settlement_price.valid()

    assert node_calls[0] == ("database", "get_chain_id", [])
    assert ("database", "get_limit_orders", ["1.3.0", "1.3.1", 50]) in node_calls


def test_connect_checks_node_once(node, node_calls):
    node.connect()
    node.connect()
    assert [c[1] for c in node_calls] == ["get_chain_id"]


def test_rpc_error_raises_ledger_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"id": 1, "error": {"code": 1, "message": "Assert Exception"}})
    )
    with pytest.raises(LedgerError, match="Assert Exception"):
        NodeRPC("http://node/rpc", transport=transport).get_account_by_name("maker")


def test_transport_error_raises_ledger_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LedgerError):
        NodeRPC("http://node/rpc", transport=httpx.MockTransport(handler)).connect()


def test_missing_account_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"id": 1, "result": None}))
    with pytest.raises(LedgerError, match="not found"):
        NodeRPC("http://node/rpc", transport=transport).get_account_by_name("ghost")


def test_wallet_builds_one_transaction():
    calls = []
    results = {
        "is_locked": True,
        "begin_builder_transaction": 0,
        "sign_builder_transaction": {"transaction_id": "abc123"},
    }

    def handler(request):
        body = json.loads(request.content)
        calls.append((body["method"], body["params"]))
        return httpx.Response(200, json={"id": body["id"], "result": results.get(body["method"])})

    wallet = WalletRPC("http://wallet/rpc", "maker", password="pw", transport=httpx.MockTransport(handler))
    ops = [
        LimitOrderCancel(order="1.7.1", fee_paying_account="1.2.17"),
        LimitOrderCreate(
            seller="1.2.17",
            amount_to_sell=AssetAmount(asset_id="1.3.1", amount=100),
            min_to_receive=AssetAmount(asset_id="1.3.3", amount=200),
            expiration=datetime(2026, 10, 17, tzinfo=timezone.utc),
        ),
    ]
    ledger = GrapheneLedger(NodeRPC("http://node/rpc"), wallet)
    assert ledger.sign_and_broadcast(["WIF1"], "1.3.0", ops) == "abc123"
    assert [c[0] for c in calls] == [
        "is_locked",
        "unlock",
        "import_key",
        "begin_builder_transaction",
        "add_operation_to_builder_transaction",
        "add_operation_to_builder_transaction",
        "set_fees_on_builder_transaction",
        "sign_builder_transaction",
        "remove_builder_transaction",
    ]
    assert calls[4][1] == [0, ops[0].to_rpc()]
    assert calls[6][1] == [0, "1.3.0"]
    assert calls[7][1] == [0, True]
    assert calls[8][1] == [0]

    calls.clear()
    wallet.sign_and_broadcast(["WIF1"], "1.3.0", ops[:1])
    assert "import_key" not in [c[0] for c in calls]


def index_transport(calls: list, fail: bool = False):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, dict(request.url.params)))
        if fail:
            return httpx.Response(500)
        if request.url.path == "/v2/listings/":
            return httpx.Response(200, json={"data": [{"id": 1, "name": "Bitcoin", "symbol": "BTC"}]})
        if request.url.path == "/v2/ticker/":
            return httpx.Response(
                200,
                json={
                    "data": {
                        "1": {"id": 1, "symbol": "BTC", "quotes": {"BTC": {"price": 1.0}}},
                        "1027": {"id": 1027, "symbol": "ETH", "quotes": {"BTC": {"price": 0.05}}},
                    }
                },
            )
        return httpx.Response(200, json={"data": {"id": 2, "symbol": "OTN", "quotes": {"BTC": {"price": 0.0001}}}})

    return httpx.MockTransport(handler)


def test_index_client_endpoints():
    calls = []
    client = IndexClient("https://index.example/", transport=index_transport(calls))
    assert [lst.symbol for lst in client.listings()] == ["BTC"]
    tickers = client.tickers(limit=10)
    assert set(tickers) == {"BTC", "ETH"}
    assert tickers["ETH"].price_in("BTC") == 0.05
    assert client.ticker(2).symbol == "OTN"
    assert calls[1] == ("/v2/ticker/", {"limit": "10", "convert": "BTC"})
    assert calls[2] == ("/v2/ticker/2/", {"convert": "BTC"})


def test_index_client_http_error():
    client = IndexClient("https://index.example", transport=index_transport([], fail=True))
    with pytest.raises(PriceIndexError):
        client.listings()


def test_wallet_releases_builder_when_signing_fails():
    calls = []

    def handler(request):
        body = json.loads(request.content)
        calls.append(body["method"])
        if body["method"] == "sign_builder_transaction":
            reply = {"error": {"message": "missing required active authority"}}
        else:
            reply = {"result": 3 if body["method"] == "begin_builder_transaction" else None}
        return httpx.Response(200, json={"id": body["id"], **reply})

    wallet = WalletRPC("http://wallet/rpc", "maker", transport=httpx.MockTransport(handler))
    with pytest.raises(LedgerError, match="active authority"):
        wallet.sign_and_broadcast([], "1.3.0", [LimitOrderCancel(order="1.7.1", fee_paying_account="1.2.17")])
    assert calls[-2:] == ["sign_builder_transaction", "remove_builder_transaction"]


def test_non_object_rpc_body_raises_ledger_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["not", "an", "envelope"]))
    with pytest.raises(LedgerError, match="unexpected response"):
        NodeRPC("http://node/rpc", transport=transport).connect()


def test_index_client_malformed_ticker():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": None}))
    with pytest.raises(PriceIndexError):
        IndexClient("https://index.example", transport=transport).ticker(2)


def test_index_client_malformed_listing():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": [{"id": "x"}]}))
    with pytest.raises(PriceIndexError):
        IndexClient("https://index.example", transport=transport).listings()
