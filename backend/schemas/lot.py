"""Pydantic schemas for lots, lot events and lot snapshots."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LotEventType(str, Enum):
    """Kinds of fact that can be appended to a lot."""

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    SPLIT = "SPLIT"
    ASSIGNED_AWAY = "ASSIGNED_AWAY"
    ASSIGNMENT_IN = "ASSIGNMENT_IN"
    ADJUSTMENT = "ADJUSTMENT"


class LotCreate(BaseModel):
    """Schema for opening a lot from a share purchase."""

    account_id: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    opened_at: datetime
    quantity: int = Field(gt=0)
    price_per_share: Decimal = Field(gt=0)
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    notes: str | None = None

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


class LotSaleCreate(BaseModel):
    """Schema for selling shares out of a lot."""

    occurred_at: datetime
    quantity: int = Field(gt=0)
    price_per_share: Decimal | None = Field(default=None, gt=0)
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    memo: str | None = None


class LotSplitCreate(BaseModel):
    """Schema for a stock split.

    ``ratio`` is new shares per old share: 2.0 for a 2-for-1 split,
    0.5 for a 1-for-2 reverse split.
    """

    occurred_at: datetime
    ratio: Decimal = Field(gt=0)
    memo: str | None = None


class LotCashEventCreate(BaseModel):
    """Schema for a cash-only event (dividend or correcting adjustment)."""

    occurred_at: datetime
    amount: Decimal
    memo: str | None = None


class LotResponse(BaseModel):
    """Schema for Lot API response."""

    id: str
    account_id: str
    symbol: str
    opened_at: datetime
    initial_qty: int
    current_qty: int
    price_per_share: Decimal
    fees_at_open: Decimal
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LotEventResponse(BaseModel):
    """Schema for LotEvent API response."""

    id: str
    lot_id: str
    occurred_at: datetime
    type: LotEventType
    quantity: int | None = None
    amount: Decimal | None = None
    fees: Decimal | None = None
    memo: str | None = None
    is_opening: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LotSnapshotBody(BaseModel):
    """Replayed cost and premium position of a lot."""

    current_qty: int
    gross_cost: Decimal
    net_premium: Decimal
    effective_basis: Decimal
    effective_price_per_share: Decimal

    model_config = ConfigDict(from_attributes=True)


class LotSnapshotResponse(BaseModel):
    """A lot together with its replayed snapshot."""

    lot: LotResponse
    snapshot: LotSnapshotBody
