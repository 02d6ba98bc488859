"""Graphene node and wallet JSON-RPC clients over HTTP."""

from __future__ import annotations

import itertools
from typing import Any, Sequence

import httpx
import structlog

from dexmaker.errors import LedgerError
from dexmaker.models import Account, Asset, AssetAmount, BitAssetData, LimitOrder, Operation

log = structlog.get_logger(__name__)


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client. Raises LedgerError on transport or RPC errors."""

    def __init__(self, url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self.url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    def request(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            resp = self._client.post(self.url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise LedgerError(f"{method} failed: {e}") from e
        if not isinstance(data, dict):
            raise LedgerError(f"{method}: unexpected response")
        if data.get("error"):
            err = data["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            raise LedgerError(f"{method} error: {message}")
        return data.get("result")

    def close(self) -> None:
        self._client.close()


class NodeRPC:
    """Database API of a graphene node (`call` with api name "database")."""

    def __init__(self, url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self._rpc = JsonRpcClient(url, timeout=timeout, transport=transport)
        self.chain_id: str | None = None

    def call(self, method: str, *args: Any) -> Any:
        return self._rpc.request("call", ["database", method, list(args)])

    def connect(self) -> NodeRPC:
        if self.chain_id is None:
            self.chain_id = self.call("get_chain_id")
            log.info("node_connected", url=self._rpc.url, chain_id=self.chain_id)
        return self

    def get_account_by_name(self, name: str) -> Account:
        raw = self.call("get_account_by_name", name)
        if not raw:
            raise LedgerError(f"Account '{name}' not found")
        return Account.model_validate(raw)

    def lookup_asset_symbols(self, symbols: Sequence[str]) -> list[Asset | None]:
        raw = self.call("lookup_asset_symbols", list(symbols))
        return [Asset.model_validate(a) if a else None for a in raw or []]

    def get_account_balances(self, account_id: str, asset_ids: Sequence[str]) -> list[AssetAmount]:
        raw = self.call("get_account_balances", account_id, list(asset_ids))
        return [AssetAmount.model_validate(b) for b in raw or []]

    def get_limit_orders(self, base_id: str, quote_id: str, limit: int) -> list[LimitOrder]:
        raw = self.call("get_limit_orders", base_id, quote_id, limit)
        return [LimitOrder.model_validate(o) for o in raw or []]

    def get_bitasset_data(self, bitasset_data_id: str) -> BitAssetData:
        raw = self.call("get_objects", [bitasset_data_id])
        if not raw or raw[0] is None:
            raise LedgerError(f"Bitasset data {bitasset_data_id} not found")
        return BitAssetData.model_validate(raw[0])

    def close(self) -> None:
        self._rpc.close()


class WalletRPC:
    """Wallet daemon: imports keys, builds, signs and broadcasts transactions."""

    def __init__(
        self,
        url: str,
        account_name: str,
        password: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._rpc = JsonRpcClient(url, timeout=timeout, transport=transport)
        self.account_name = account_name
        self._password = password
        self._imported: set[str] = set()

    def _unlock(self) -> None:
        if self._password and self._rpc.request("is_locked", []):
            self._rpc.request("unlock", [self._password])

    def _import_keys(self, keys: Sequence[str]) -> None:
        for wif in keys:
            if wif in self._imported:
                continue
            self._rpc.request("import_key", [self.account_name, wif])
            self._imported.add(wif)

    def _release(self, handle: Any) -> None:
        # the daemon keeps builder handles until removed
        try:
            self._rpc.request("remove_builder_transaction", [handle])
        except LedgerError as e:
            log.warning("builder_release_failed", handle=handle, error=str(e))

    def sign_and_broadcast(self, keys: Sequence[str], fee_asset_id: str, operations: Sequence[Operation]) -> str:
        self._unlock()
        self._import_keys(keys)
        handle = self._rpc.request("begin_builder_transaction", [])
        try:
            for op in operations:
                self._rpc.request("add_operation_to_builder_transaction", [handle, op.to_rpc()])
            self._rpc.request("set_fees_on_builder_transaction", [handle, fee_asset_id])
            signed = self._rpc.request("sign_builder_transaction", [handle, True])
        finally:
            self._release(handle)
        tx_id = ""
        if isinstance(signed, dict):
            tx_id = signed.get("transaction_id") or signed.get("id") or ""
        log.debug("transaction_broadcast", ops=len(operations), tx_id=tx_id)
        return tx_id

    def close(self) -> None:
        self._rpc.close()


class GrapheneLedger:
    """LedgerClient backed by a node (reads) and a wallet daemon (signing)."""

    def __init__(self, node: NodeRPC, wallet: WalletRPC) -> None:
        self.node = node
        self.wallet = wallet

    def database(self) -> NodeRPC:
        return self.node.connect()

    def sign_and_broadcast(self, keys: Sequence[str], fee_asset_id: str, operations: Sequence[Operation]) -> str:
        return self.wallet.sign_and_broadcast(keys, fee_asset_id, operations)

    def close(self) -> None:
        self.node.close()
        self.wallet.close()
