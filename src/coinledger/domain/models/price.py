"""Persisted market price and tracked instrument models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class TrackedInstrument:
    """An instrument in the universe refreshed by the price sync."""

    coin_id: str
    symbol: str
    name: str
    is_active: bool = True


@dataclass
class PriceQuote:
    """Latest known price for one instrument (the Price Store row)."""

    coin_id: str
    symbol: str
    name: str
    current_price: Decimal
    last_updated: datetime
    market_cap: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    price_change_24h: Optional[Decimal] = None
    price_change_percentage_24h: Optional[Decimal] = None
