"""Exception hierarchy.

Configuration errors are fatal at startup for the affected market. Ledger and
price-index errors are transient: logged, and the current tick is abandoned or
continues with stale data.
"""


class DexMakerError(Exception):
    """Base application error."""


class ConfigError(DexMakerError):
    """Invalid or incomplete configuration."""


class UnknownAssetError(ConfigError):
    def __init__(self, symbol: str, source: str = "ledger") -> None:
        self.symbol = symbol
        self.source = source
        super().__init__(f"Unknown asset '{symbol}' ({source})")


class LedgerError(DexMakerError):
    """Node/wallet RPC transport failure or RPC error response."""


class PriceIndexError(DexMakerError):
    """External price index request failed."""
