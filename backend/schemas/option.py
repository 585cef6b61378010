"""Pydantic schemas for short option positions, trades and allocations."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OptionType(str, Enum):
    CALL = "CALL"
    PUT = "PUT"


class OptionStatus(str, Enum):
    """Lifecycle states. Everything but OPEN is terminal."""

    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    EXPIRED = "EXPIRED"
    CLOSED = "CLOSED"


class TradeAction(str, Enum):
    OPEN = "OPEN"
    CLOSE = "CLOSE"
    ASSIGN = "ASSIGN"
    EXPIRE = "EXPIRE"


class AllocationInput(BaseModel):
    """One lot's share of an option trade."""

    lot_id: str = Field(min_length=1)
    proportion: Decimal = Field(ge=0, le=1)


class OptionOpenRequest(BaseModel):
    """Schema for writing (selling to open) an option."""

    account_id: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    type: OptionType
    contracts: int = Field(gt=0)
    strike: Decimal = Field(gt=0)
    expiry: date
    price_per_contract: Decimal
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    opened_at: datetime
    allocations: list[AllocationInput] = Field(min_length=1)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


class OptionCloseRequest(BaseModel):
    """Schema for buying back (closing) some or all contracts."""

    contracts: int = Field(gt=0)
    price_per_contract: Decimal
    fees: Decimal = Field(default=Decimal("0"), ge=0)
    occurred_at: datetime
    allocations: list[AllocationInput] = Field(min_length=1)


class AssignCallRequest(BaseModel):
    """Schema for a covered call being exercised against a lot."""

    lot_id: str = Field(min_length=1)
    contracts: int = Field(gt=0)
    occurred_at: datetime


class AssignPutRequest(BaseModel):
    """Schema for a cash-secured put being exercised (shares bought at strike)."""

    account_id: str = Field(min_length=1)
    contracts: int = Field(gt=0)
    occurred_at: datetime


class ExpireRequest(BaseModel):
    """Schema for an option expiring worthless."""

    contracts: int | None = Field(default=None, ge=0)
    occurred_at: datetime


class OpenOptionResponse(BaseModel):
    position_id: str
    trade_id: str
    total_premium: Decimal


class TradeResultResponse(BaseModel):
    trade_id: str


class PutAssignmentResponse(BaseModel):
    trade_id: str
    lot_id: str


class PremiumAllocationResponse(BaseModel):
    """Schema for PremiumAllocation API response."""

    id: str
    option_trade_id: str
    lot_id: str
    premium: Decimal
    fees: Decimal
    proportion: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OptionTradeResponse(BaseModel):
    """Schema for OptionTrade API response."""

    id: str
    option_position_id: str
    action: TradeAction
    occurred_at: datetime
    contracts: int
    price_per_contract: Decimal
    fees: Decimal
    created_at: datetime
    allocations: list[PremiumAllocationResponse] = []

    model_config = ConfigDict(from_attributes=True)


class OptionPositionResponse(BaseModel):
    """Schema for OptionPosition API response."""

    id: str
    account_id: str
    symbol: str
    type: OptionType
    side: str
    strike: Decimal
    expiry: date
    multiplier: int
    status: OptionStatus
    opened_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OptionPositionDetailResponse(OptionPositionResponse):
    """Option position with its trade history and allocations."""

    trades: list[OptionTradeResponse] = []
