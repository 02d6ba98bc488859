"""Ledger collaborator protocols - read queries and sign-and-broadcast."""

from __future__ import annotations

from typing import Protocol, Sequence

from dexmaker.models import Account, Asset, AssetAmount, BitAssetData, LimitOrder, Operation


class DatabaseAPI(Protocol):
    """Read-only ledger queries."""

    def get_account_by_name(self, name: str) -> Account: ...
    def lookup_asset_symbols(self, symbols: Sequence[str]) -> list[Asset | None]: ...
    def get_account_balances(self, account_id: str, asset_ids: Sequence[str]) -> list[AssetAmount]: ...
    def get_limit_orders(self, base_id: str, quote_id: str, limit: int) -> list[LimitOrder]: ...
    def get_bitasset_data(self, bitasset_data_id: str) -> BitAssetData: ...


class LedgerClient(Protocol):
    """Node + wallet. Errors are raised as LedgerError."""

    def database(self) -> DatabaseAPI:
        """Bind the read-only query API."""
        ...

    def sign_and_broadcast(
        self,
        keys: Sequence[str],
        fee_asset_id: str,
        operations: Sequence[Operation],
    ) -> str:
        """Sign all operations as one transaction and broadcast it. Returns the transaction id."""
        ...
