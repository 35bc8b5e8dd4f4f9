"""Market data endpoints."""

from fastapi import APIRouter, Depends, Query

from coinledger.api.deps import get_market_data_service, get_price_sync_service
from coinledger.api.schemas import (
    StoredPriceResponse,
    CoinPriceResponse,
    CoinDetailResponse,
    SearchResultResponse,
    TrendingCoinResponse,
    HistoricalResponse,
    SyncStatusResponse,
)
from coinledger.services import MarketDataService, PriceSyncService

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/prices", response_model=list[StoredPriceResponse])
def stored_prices(market: MarketDataService = Depends(get_market_data_service)):
    """Latest prices persisted by the background sync."""
    return [StoredPriceResponse.model_validate(q) for q in market.list_stored_prices()]


@router.get("/quotes", response_model=list[CoinPriceResponse])
def quotes(
    symbols: str = Query(..., min_length=1, description="Comma-separated tickers"),
    market: MarketDataService = Depends(get_market_data_service),
):
    """Live quotes (cached for a short time)."""
    requested = [s for s in symbols.split(",") if s.strip()]
    prices = market.get_prices(requested)
    return [CoinPriceResponse.model_validate(prices[s]) for s in sorted(prices)]


@router.get("/coins/{symbol}", response_model=CoinDetailResponse)
def coin_detail(
    symbol: str,
    market: MarketDataService = Depends(get_market_data_service),
):
    return CoinDetailResponse.model_validate(market.get_coin_detail(symbol))


@router.get("/top", response_model=list[CoinPriceResponse])
def top_coins(
    limit: int = Query(default=100, ge=1, le=250),
    market: MarketDataService = Depends(get_market_data_service),
):
    """Top coins by market cap."""
    return [CoinPriceResponse.model_validate(c) for c in market.get_top_coins(limit)]


@router.get("/trending", response_model=list[TrendingCoinResponse])
def trending(market: MarketDataService = Depends(get_market_data_service)):
    return [TrendingCoinResponse.model_validate(c) for c in market.get_trending()]


@router.get("/search", response_model=list[SearchResultResponse])
def search(
    q: str = Query(..., min_length=1),
    market: MarketDataService = Depends(get_market_data_service),
):
    """Search coins by name or ticker."""
    return [SearchResultResponse.model_validate(r) for r in market.search(q)]


@router.get("/historical/{symbol}", response_model=HistoricalResponse)
def historical(
    symbol: str,
    days: int = Query(default=7, ge=1, le=3650),
    market: MarketDataService = Depends(get_market_data_service),
):
    """Historical price series."""
    return HistoricalResponse.model_validate(market.get_historical(symbol, days))


@router.get("/sync/status", response_model=SyncStatusResponse)
def sync_status(sync: PriceSyncService = Depends(get_price_sync_service)):
    """State of the background price sync."""
    return SyncStatusResponse.model_validate(sync.status())
