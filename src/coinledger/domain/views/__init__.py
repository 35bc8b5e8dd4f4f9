"""View models for service outputs."""

from coinledger.domain.views.market import (
    SimplePrice,
    CoinPrice,
    CoinDetail,
    SearchResult,
    TrendingCoin,
    PricePoint,
    HistoricalSeries,
    PriceSnapshot,
)
from coinledger.domain.views.portfolio import (
    PositionValuation,
    PortfolioValuation,
    AllocationItem,
    AllocationView,
    ProfitLossView,
    RoiView,
)

__all__ = [
    "SimplePrice",
    "CoinPrice",
    "CoinDetail",
    "SearchResult",
    "TrendingCoin",
    "PricePoint",
    "HistoricalSeries",
    "PriceSnapshot",
    "PositionValuation",
    "PortfolioValuation",
    "AllocationItem",
    "AllocationView",
    "ProfitLossView",
    "RoiView",
]
