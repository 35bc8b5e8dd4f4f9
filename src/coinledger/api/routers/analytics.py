"""Valuation and analytics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from coinledger.api.deps import get_ledger_service, get_analysis_service
from coinledger.api.schemas import (
    PerformanceResponse,
    AllocationResponse,
    ProfitLossResponse,
    RoiResponse,
    TopHoldingsResponse,
    PositionValuationResponse,
)
from coinledger.core.exceptions import ValidationError, NotFoundError
from coinledger.services import LedgerService, AnalysisService

router = APIRouter(prefix="/analytics", tags=["analytics"])


def resolve_portfolio_ids(
    portfolio_id: Optional[list[str]] = Query(default=None),
    owner_id: Optional[str] = Query(default=None),
    ledger: LedgerService = Depends(get_ledger_service),
) -> list[str]:
    """Explicit portfolio ids, or every portfolio of ``owner_id``."""
    if portfolio_id:
        return [ledger.get_portfolio(pid).portfolio_id for pid in portfolio_id]
    if owner_id:
        ids = [p.portfolio_id for p in ledger.list_portfolios(owner_id)]
        if not ids:
            raise NotFoundError("Portfolios for owner", owner_id)
        return ids
    raise ValidationError("portfolio_id or owner_id is required")


@router.get("/performance", response_model=PerformanceResponse)
def performance(
    portfolio_ids: list[str] = Depends(resolve_portfolio_ids),
    analysis: AnalysisService = Depends(get_analysis_service),
):
    """Positions with current value, P&L and totals."""
    return PerformanceResponse.model_validate(analysis.performance(portfolio_ids))


@router.get("/allocation", response_model=AllocationResponse)
def allocation(
    portfolio_ids: list[str] = Depends(resolve_portfolio_ids),
    analysis: AnalysisService = Depends(get_analysis_service),
):
    """Share of total value per symbol."""
    return AllocationResponse.model_validate(analysis.allocation(portfolio_ids))


@router.get("/profit-loss", response_model=ProfitLossResponse)
def profit_loss(
    portfolio_ids: list[str] = Depends(resolve_portfolio_ids),
    analysis: AnalysisService = Depends(get_analysis_service),
):
    """P&L per asset with top winners and losers."""
    return ProfitLossResponse.model_validate(analysis.profit_loss(portfolio_ids))


@router.get("/roi", response_model=RoiResponse)
def roi(
    portfolio_ids: list[str] = Depends(resolve_portfolio_ids),
    analysis: AnalysisService = Depends(get_analysis_service),
):
    return RoiResponse.model_validate(analysis.roi(portfolio_ids))


@router.get("/top-holdings", response_model=TopHoldingsResponse)
def top_holdings(
    limit: int = Query(default=5, ge=1, le=100),
    portfolio_ids: list[str] = Depends(resolve_portfolio_ids),
    analysis: AnalysisService = Depends(get_analysis_service),
):
    """Largest positions by current value."""
    holdings = analysis.top_holdings(portfolio_ids, limit=limit)
    return TopHoldingsResponse(
        holdings=[PositionValuationResponse.model_validate(h) for h in holdings]
    )
