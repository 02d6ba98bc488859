from dexmaker.ledger.assets import AssetCache
from dexmaker.ledger.base import DatabaseAPI, LedgerClient
from dexmaker.ledger.rpc import GrapheneLedger, NodeRPC, WalletRPC

__all__ = ["AssetCache", "DatabaseAPI", "LedgerClient", "GrapheneLedger", "NodeRPC", "WalletRPC"]
