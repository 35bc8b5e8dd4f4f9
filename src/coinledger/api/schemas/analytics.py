"""Pydantic schemas for analytics endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class PositionValuationResponse(BaseModel):
    """Response schema for a valued position."""

    model_config = {"from_attributes": True}

    portfolio_id: str
    symbol: str
    name: Optional[str] = None
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal
    current_value: Decimal
    cost_basis: Decimal
    profit_loss: Decimal
    profit_loss_percentage: Decimal
    price_change_percentage_24h: Decimal
    change_24h: Decimal
    change_24h_contribution: Decimal
    opened_at: Optional[datetime] = None


class PerformanceResponse(BaseModel):
    """Response schema for portfolio performance."""

    model_config = {"from_attributes": True}

    positions: list[PositionValuationResponse]
    total_value: Decimal
    total_cost: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percentage: Decimal
    weighted_change_24h: Decimal
    change_24h: Decimal
    as_of: Optional[datetime] = None


class AllocationItemResponse(BaseModel):
    """Response schema for a single allocation item."""

    model_config = {"from_attributes": True}

    symbol: str
    name: Optional[str] = None
    quantity: Decimal
    value: Decimal
    percentage: Decimal


class AllocationResponse(BaseModel):
    """Response schema for allocation breakdown."""

    model_config = {"from_attributes": True}

    items: list[AllocationItemResponse]
    total_value: Decimal
    as_of: Optional[datetime] = None


class ProfitLossResponse(BaseModel):
    """Response schema for P&L ranking."""

    model_config = {"from_attributes": True}

    valuation: PerformanceResponse
    assets: list[PositionValuationResponse]
    top_winners: list[PositionValuationResponse]
    top_losers: list[PositionValuationResponse]
    winners_count: int
    losers_count: int


class RoiResponse(BaseModel):
    """Response schema for ROI metrics."""

    model_config = {"from_attributes": True}

    total_invested: Decimal
    total_current_value: Decimal
    total_fees: Decimal
    net_profit_loss: Decimal
    roi: Decimal
    days_held: int
    annualized_roi: Decimal


class TopHoldingsResponse(BaseModel):
    """Response schema for the largest holdings."""

    holdings: list[PositionValuationResponse]
