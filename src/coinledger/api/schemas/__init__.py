"""Pydantic schemas for API request/response."""

from coinledger.api.schemas.portfolio import (
    PortfolioCreateRequest,
    PortfolioUpdateRequest,
    PortfolioResponse,
    PortfolioListResponse,
    PositionResponse,
    PositionListResponse,
)
from coinledger.api.schemas.transaction import (
    TradeCreateRequest,
    TransactionResponse,
    TransactionListResponse,
    PositionRemovedResponse,
    TradeResponse,
    TransactionDeleteResponse,
)
from coinledger.api.schemas.analytics import (
    PositionValuationResponse,
    PerformanceResponse,
    AllocationItemResponse,
    AllocationResponse,
    ProfitLossResponse,
    RoiResponse,
    TopHoldingsResponse,
)
from coinledger.api.schemas.market import (
    StoredPriceResponse,
    CoinPriceResponse,
    CoinDetailResponse,
    SearchResultResponse,
    TrendingCoinResponse,
    PricePointResponse,
    HistoricalResponse,
    SyncStatusResponse,
)

__all__ = [
    "PortfolioCreateRequest",
    "PortfolioUpdateRequest",
    "PortfolioResponse",
    "PortfolioListResponse",
    "PositionResponse",
    "PositionListResponse",
    "TradeCreateRequest",
    "TransactionResponse",
    "TransactionListResponse",
    "PositionRemovedResponse",
    "TradeResponse",
    "TransactionDeleteResponse",
    "PositionValuationResponse",
    "PerformanceResponse",
    "AllocationItemResponse",
    "AllocationResponse",
    "ProfitLossResponse",
    "RoiResponse",
    "TopHoldingsResponse",
    "StoredPriceResponse",
    "CoinPriceResponse",
    "CoinDetailResponse",
    "SearchResultResponse",
    "TrendingCoinResponse",
    "PricePointResponse",
    "HistoricalResponse",
    "SyncStatusResponse",
]
