"""Pydantic schemas for transaction endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from coinledger.domain.models.enums import TransactionType
from coinledger.api.schemas.portfolio import PositionResponse


class TradeCreateRequest(BaseModel):
    """Request schema for submitting a trade."""

    portfolio_id: str = Field(..., description="Portfolio ID")
    txn_type: TransactionType = Field(..., description="BUY or SELL")
    symbol: str = Field(..., min_length=1, max_length=20, description="Ticker, e.g. BTC")
    quantity: Decimal = Field(..., gt=0, description="Units traded")
    price: Decimal = Field(..., ge=0, description="Unit price in USD")
    fee: Decimal = Field(default=Decimal("0"), ge=0, description="Transaction fee")
    timestamp: Optional[datetime] = Field(
        default=None,
        description="Trade time; naive values are UTC; defaults to now",
    )
    note: Optional[str] = Field(default=None, max_length=500, description="Optional note")
    name: Optional[str] = Field(default=None, max_length=255, description="Display name")

    @field_validator("symbol")
    @classmethod
    def uppercase_symbol(cls, v: str) -> str:
        return v.strip().upper()


class TransactionResponse(BaseModel):
    """Response schema for a single transaction."""

    model_config = {"from_attributes": True}

    txn_id: str
    portfolio_id: str
    txn_type: TransactionType
    symbol: str
    quantity: Decimal
    price: Decimal
    fee: Decimal
    gross_amount: Decimal
    timestamp: datetime
    note: Optional[str] = None
    created_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    """Response schema for listing transactions."""

    transactions: list[TransactionResponse]
    total: int


class PositionRemovedResponse(BaseModel):
    """Response schema when a SELL closed a position."""

    model_config = {"from_attributes": True}

    portfolio_id: str
    symbol: str
    sold_quantity: Decimal
    average_cost: Decimal
    discarded_cost_basis: Decimal


class TradeResponse(BaseModel):
    """Response schema for a trade submission."""

    model_config = {"from_attributes": True}

    transaction: TransactionResponse
    position: Optional[PositionResponse] = None
    removed: Optional[PositionRemovedResponse] = None
    replayed: bool = False


class TransactionDeleteResponse(BaseModel):
    """Response schema for removing a ledger entry."""

    txn_id: str
    position: Optional[PositionResponse] = None
