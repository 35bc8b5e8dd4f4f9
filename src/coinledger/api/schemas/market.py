"""Pydantic schemas for market data endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class StoredPriceResponse(BaseModel):
    """Response schema for a persisted price row."""

    model_config = {"from_attributes": True}

    coin_id: str
    symbol: str
    name: str
    current_price: Decimal
    market_cap: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    price_change_24h: Optional[Decimal] = None
    price_change_percentage_24h: Optional[Decimal] = None
    last_updated: datetime


class CoinPriceResponse(BaseModel):
    """Response schema for a market snapshot."""

    model_config = {"from_attributes": True}

    coin_id: str
    symbol: str
    name: str
    current_price: Decimal
    price_change_24h: Optional[Decimal] = None
    price_change_percentage_24h: Optional[Decimal] = None
    market_cap: Optional[Decimal] = None
    total_volume: Optional[Decimal] = None
    high_24h: Optional[Decimal] = None
    low_24h: Optional[Decimal] = None
    image: Optional[str] = None


class CoinDetailResponse(CoinPriceResponse):
    """Response schema for coin detail."""

    description: Optional[str] = None
    market_cap_rank: Optional[int] = None
    circulating_supply: Optional[Decimal] = None
    total_supply: Optional[Decimal] = None
    max_supply: Optional[Decimal] = None


class SearchResultResponse(BaseModel):
    """Response schema for a search hit."""

    model_config = {"from_attributes": True}

    coin_id: str
    name: str
    symbol: str
    image: Optional[str] = None
    market_cap_rank: Optional[int] = None


class TrendingCoinResponse(SearchResultResponse):
    """Response schema for a trending coin."""

    price_btc: Optional[Decimal] = None


class PricePointResponse(BaseModel):
    model_config = {"from_attributes": True}

    timestamp: datetime
    price: Decimal


class HistoricalResponse(BaseModel):
    """Response schema for a historical price series."""

    model_config = {"from_attributes": True}

    symbol: str
    days: int
    prices: list[PricePointResponse]


class SyncStatusResponse(BaseModel):
    """Response schema for price sync status."""

    model_config = {"from_attributes": True}

    running: bool
    interval_ms: int
    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    passes: int
    failures: int
