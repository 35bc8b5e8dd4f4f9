"""View models for market data returned by providers."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class SimplePrice:
    """Batch price entry keyed by coin id (price sync input)."""

    coin_id: str
    price: Decimal
    market_cap: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    change_percentage_24h: Optional[Decimal] = None

    @property
    def change_24h(self) -> Optional[Decimal]:
        """Absolute 24h change derived from price and percentage change."""
        if self.change_percentage_24h is None:
            return None
        divisor = Decimal("1") + self.change_percentage_24h / Decimal("100")
        if divisor == 0:
            return None
        return self.price - self.price / divisor


@dataclass
class CoinPrice:
    """Market snapshot for one coin."""

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


@dataclass
class CoinDetail(CoinPrice):
    """Detailed coin information."""

    description: Optional[str] = None
    market_cap_rank: Optional[int] = None
    circulating_supply: Optional[Decimal] = None
    total_supply: Optional[Decimal] = None
    max_supply: Optional[Decimal] = None


@dataclass
class SearchResult:
    """Search hit."""

    coin_id: str
    name: str
    symbol: str
    image: Optional[str] = None
    market_cap_rank: Optional[int] = None


@dataclass
class TrendingCoin(SearchResult):
    """Trending list entry."""

    price_btc: Optional[Decimal] = None


@dataclass
class PricePoint:
    """One point of a historical price series."""

    timestamp: datetime
    price: Decimal


@dataclass
class HistoricalSeries:
    """Historical prices for a coin over a day-count window."""

    symbol: str
    days: int
    prices: list[PricePoint] = field(default_factory=list)


@dataclass
class PriceSnapshot:
    """
    Resolved price used by valuation.

    ``source`` is "store" for a fresh persisted quote, "live" for an
    on-demand fetch and "stale" when an old persisted quote was served because
    the upstream failed.
    """

    symbol: str
    price: Decimal
    as_of: datetime
    name: Optional[str] = None
    change_percentage_24h: Optional[Decimal] = None
    source: str = "store"
