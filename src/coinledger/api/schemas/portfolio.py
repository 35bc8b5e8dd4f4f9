"""Pydantic schemas for portfolio endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PortfolioCreateRequest(BaseModel):
    """Request schema for creating a portfolio."""

    owner_id: str = Field(..., min_length=1, max_length=255, description="Owner reference")
    name: str = Field(..., min_length=1, max_length=255, description="Portfolio name")
    description: Optional[str] = Field(default=None, max_length=1000)


class PortfolioUpdateRequest(BaseModel):
    """Request schema for updating a portfolio (partial update)."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)


class PortfolioResponse(BaseModel):
    """Response schema for a portfolio."""

    model_config = {"from_attributes": True}

    portfolio_id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class PortfolioListResponse(BaseModel):
    """Response schema for listing portfolios."""

    portfolios: list[PortfolioResponse]
    total: int


class PositionResponse(BaseModel):
    """Response schema for a derived position."""

    model_config = {"from_attributes": True}

    portfolio_id: str
    symbol: str
    name: Optional[str] = None
    quantity: Decimal
    average_cost: Decimal
    cost_basis: Decimal
    first_txn_id: Optional[str] = None
    last_txn_id: Optional[str] = None
    opened_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int


class PositionListResponse(BaseModel):
    """Response schema for a portfolio's positions."""

    positions: list[PositionResponse]
    total: int
