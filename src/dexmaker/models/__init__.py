"""Canonical schema (Pydantic) - Asset, Market, Price, LimitOrder, operations."""

from dexmaker.models.asset import CORE_ASSET_ID, Account, Asset, AssetAmount, Price
from dexmaker.models.market import Market
from dexmaker.models.orders import (
    BitAssetData,
    LimitOrder,
    LimitOrderCancel,
    LimitOrderCreate,
    Operation,
    PriceFeed,
)

__all__ = [
    "CORE_ASSET_ID",
    "Account",
    "Asset",
    "AssetAmount",
    "Price",
    "Market",
    "LimitOrder",
    "BitAssetData",
    "PriceFeed",
    "LimitOrderCancel",
    "LimitOrderCreate",
    "Operation",
]
