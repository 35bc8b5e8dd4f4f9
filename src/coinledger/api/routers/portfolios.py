"""Portfolio and position endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from coinledger.api.deps import get_ledger_service
from coinledger.api.schemas import (
    PortfolioCreateRequest,
    PortfolioUpdateRequest,
    PortfolioResponse,
    PortfolioListResponse,
    PositionResponse,
    PositionListResponse,
)
from coinledger.services import LedgerService

router = APIRouter(prefix="/portfolios", tags=["portfolios"])


def _positions(positions) -> PositionListResponse:
    return PositionListResponse(
        positions=[PositionResponse.model_validate(p) for p in positions],
        total=len(positions),
    )


@router.post("", response_model=PortfolioResponse, status_code=201)
def create_portfolio(
    data: PortfolioCreateRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Create a new portfolio."""
    portfolio = ledger.create_portfolio(
        owner_id=data.owner_id,
        name=data.name,
        description=data.description,
    )
    return PortfolioResponse.model_validate(portfolio)


@router.get("", response_model=PortfolioListResponse)
def list_portfolios(
    owner_id: Optional[str] = Query(default=None),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """List portfolios, optionally for one owner."""
    portfolios = ledger.list_portfolios(owner_id)
    return PortfolioListResponse(
        portfolios=[PortfolioResponse.model_validate(p) for p in portfolios],
        total=len(portfolios),
    )


@router.post("/default", response_model=PortfolioResponse)
def get_or_create_default_portfolio(
    owner_id: str = Query(..., min_length=1),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Return the owner's first portfolio, creating "Main" if needed."""
    return PortfolioResponse.model_validate(ledger.get_or_create_default_portfolio(owner_id))


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
def get_portfolio(
    portfolio_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
):
    return PortfolioResponse.model_validate(ledger.get_portfolio(portfolio_id))


@router.patch("/{portfolio_id}", response_model=PortfolioResponse)
def update_portfolio(
    portfolio_id: str,
    data: PortfolioUpdateRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Rename a portfolio or change its description."""
    portfolio = ledger.update_portfolio(
        portfolio_id,
        name=data.name,
        description=data.description,
    )
    return PortfolioResponse.model_validate(portfolio)


@router.delete("/{portfolio_id}", status_code=204)
def delete_portfolio(
    portfolio_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Delete a portfolio with all of its transactions and positions."""
    ledger.delete_portfolio(portfolio_id)
    return Response(status_code=204)


@router.get("/{portfolio_id}/positions", response_model=PositionListResponse)
def get_positions(
    portfolio_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Current derived positions."""
    return _positions(ledger.get_positions(portfolio_id))


@router.post("/{portfolio_id}/rebuild", response_model=PositionListResponse)
def rebuild_positions(
    portfolio_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Recompute every position of the portfolio from its ledger."""
    return _positions(ledger.rebuild_positions(portfolio_id))
