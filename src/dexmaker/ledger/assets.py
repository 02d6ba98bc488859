"""Symbol -> Asset cache over the database API."""

from __future__ import annotations

from threading import Lock

from dexmaker.errors import UnknownAssetError
from dexmaker.ledger.base import DatabaseAPI
from dexmaker.models import Asset


class AssetCache:
    """Assets are immutable for the maker's lifetime, so lookups are cached forever."""

    def __init__(self, db: DatabaseAPI) -> None:
        self._db = db
        self._by_symbol: dict[str, Asset] = {}
        self._lock = Lock()

    def get_by_symbol(self, symbol: str) -> Asset:
        with self._lock:
            asset = self._by_symbol.get(symbol)
            if asset is None:
                found = self._db.lookup_asset_symbols([symbol])
                asset = found[0] if found else None
                if asset is None:
                    raise UnknownAssetError(symbol)
                self._by_symbol[symbol] = asset
            return asset
