"""LimitOrder, BitAssetData and order operations (graphene wire format)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from dexmaker.models.asset import AssetAmount, Price

LIMIT_ORDER_CREATE_OP = 1
LIMIT_ORDER_CANCEL_OP = 2


def format_time(ts: datetime) -> str:
    """Graphene time_point_sec: UTC, seconds resolution, no zone suffix."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


class LimitOrder(BaseModel):
    """Resting order on the ledger."""

    id: str
    seller: str
    for_sale: int = Field(..., gt=0)
    deferred_fee: int = 0
    sell_price: Price
    expiration: str | None = None


class PriceFeed(BaseModel):
    settlement_price: Price = Field(default_factory=Price)


class BitAssetData(BaseModel):
    """Derivative asset data - only the current feed is used."""

    current_feed: PriceFeed = Field(default_factory=PriceFeed)


class LimitOrderCancel(BaseModel):
    order: str
    fee_paying_account: str

    def to_rpc(self) -> list[Any]:
        return [
            LIMIT_ORDER_CANCEL_OP,
            {
                "fee_paying_account": self.fee_paying_account,
                "order": self.order,
                "extensions": [],
            },
        ]


class LimitOrderCreate(BaseModel):
    seller: str
    amount_to_sell: AssetAmount
    min_to_receive: AssetAmount
    expiration: datetime
    fill_or_kill: bool = False
    extensions: list[Any] = Field(default_factory=list)

    def to_rpc(self) -> list[Any]:
        return [
            LIMIT_ORDER_CREATE_OP,
            {
                "seller": self.seller,
                "amount_to_sell": self.amount_to_sell.model_dump(),
                "min_to_receive": self.min_to_receive.model_dump(),
                "expiration": format_time(self.expiration),
                "fill_or_kill": self.fill_or_kill,
                "extensions": list(self.extensions),
            },
        ]


Operation = LimitOrderCancel | LimitOrderCreate
