"""Valuation and analytics over derived positions."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from coinledger.core.exceptions import ValidationError
from coinledger.core.timezone import now_utc
from coinledger.domain.models import Position
from coinledger.domain.views import (
    PriceSnapshot,
    PositionValuation,
    PortfolioValuation,
    AllocationItem,
    AllocationView,
    ProfitLossView,
    RoiView,
)
from coinledger.repositories.protocols import PositionRepository, TransactionRepository
from coinledger.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
DAYS_PER_YEAR = Decimal("365")
TOP_MOVERS = 5
DEFAULT_TOP_HOLDINGS = 5


def _pct(value: Decimal) -> Decimal:
    return value.quantize(CENT)


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator, or 0 when the denominator is 0."""
    if denominator == 0:
        return ZERO
    return numerator / denominator


def value_positions(
    positions: list[Position],
    prices: dict[str, PriceSnapshot],
    as_of: Optional[datetime] = None,
) -> PortfolioValuation:
    """
    Enrich positions with prices and compute totals.

    A symbol with no price is valued at 0.
    """
    rows = []
    for position in positions:
        snapshot = prices.get(position.symbol)
        price = snapshot.price if snapshot else ZERO
        change_pct = (snapshot.change_percentage_24h if snapshot else None) or ZERO
        current_value = position.quantity * price
        cost_basis = position.quantity * position.average_cost
        profit_loss = current_value - cost_basis
        rows.append(
            PositionValuation(
                portfolio_id=position.portfolio_id,
                symbol=position.symbol,
                name=position.name or (snapshot.name if snapshot else None),
                quantity=position.quantity,
                average_cost=position.average_cost,
                current_price=price,
                current_value=current_value,
                cost_basis=cost_basis,
                profit_loss=profit_loss,
                profit_loss_percentage=_pct(_ratio(profit_loss, cost_basis) * HUNDRED),
                price_change_percentage_24h=_pct(change_pct),
                change_24h=(change_pct / HUNDRED * current_value).quantize(CENT),
                opened_at=position.opened_at,
            )
        )

    total_value = sum((r.current_value for r in rows), ZERO)
    total_cost = sum((r.cost_basis for r in rows), ZERO)
    weighted = ZERO
    for row in rows:
        # Value-weighted share of the portfolio's 24h move
        contribution = _ratio(row.current_value, total_value) * row.price_change_percentage_24h
        row.change_24h_contribution = _pct(contribution)
        weighted += contribution

    total_profit_loss = total_value - total_cost
    return PortfolioValuation(
        positions=rows,
        total_value=total_value,
        total_cost=total_cost,
        total_profit_loss=total_profit_loss,
        total_profit_loss_percentage=_pct(_ratio(total_profit_loss, total_cost) * HUNDRED),
        weighted_change_24h=_pct(weighted),
        change_24h=sum((r.change_24h for r in rows), ZERO),
        as_of=as_of or now_utc(),
    )


def allocation(valuation: PortfolioValuation) -> AllocationView:
    """Share of total value per symbol, largest first."""
    by_symbol: dict[str, AllocationItem] = {}
    for row in valuation.positions:
        item = by_symbol.get(row.symbol)
        if item is None:
            by_symbol[row.symbol] = AllocationItem(
                symbol=row.symbol,
                name=row.name,
                quantity=row.quantity,
                value=row.current_value,
                percentage=ZERO,
            )
        else:
            item.quantity += row.quantity
            item.value += row.current_value

    items = sorted(by_symbol.values(), key=lambda i: i.value, reverse=True)
    for item in items:
        item.percentage = _pct(_ratio(item.value, valuation.total_value) * HUNDRED)
    return AllocationView(items=items, total_value=valuation.total_value, as_of=valuation.as_of)


def profit_loss(valuation: PortfolioValuation, top_n: int = TOP_MOVERS) -> ProfitLossView:
    """Assets ranked by P&L with the top winners and losers."""
    assets = sorted(valuation.positions, key=lambda r: r.profit_loss, reverse=True)
    winners = [r for r in assets if r.profit_loss > 0]
    losers = sorted((r for r in assets if r.profit_loss < 0), key=lambda r: r.profit_loss)
    return ProfitLossView(
        valuation=valuation,
        assets=assets,
        top_winners=winners[:top_n],
        top_losers=losers[:top_n],
        winners_count=len(winners),
        losers_count=len(losers),
    )


def top_holdings(
    valuation: PortfolioValuation,
    limit: int = DEFAULT_TOP_HOLDINGS,
) -> list[PositionValuation]:
    """Largest positions by current value."""
    return sorted(valuation.positions, key=lambda r: r.current_value, reverse=True)[:limit]


def roi(
    valuation: PortfolioValuation,
    total_fees: Decimal,
    now: Optional[datetime] = None,
) -> RoiView:
    """
    Simplified return on investment.

    ``roi = (value - invested - fees) / invested`` in percent, annualized
    linearly over whole days since the oldest position was opened.
    """
    now = now or now_utc()
    invested = valuation.total_cost
    net = valuation.total_value - invested - total_fees
    roi_pct = _ratio(net, invested) * HUNDRED

    opened = [r.opened_at for r in valuation.positions if r.opened_at is not None]
    days_held = max(0, (now - min(opened)).days) if opened else 0
    annualized = _ratio(roi_pct, Decimal(days_held)) * DAYS_PER_YEAR if invested else ZERO

    return RoiView(
        total_invested=invested,
        total_current_value=valuation.total_value,
        total_fees=total_fees,
        net_profit_loss=net,
        roi=_pct(roi_pct),
        days_held=days_held,
        annualized_roi=_pct(annualized),
    )


class AnalysisService:
    """
    Service for portfolio valuation and analytics.

    Loads positions for one or more portfolios, resolves their prices through
    the market data service and applies the pure aggregations above.
    """

    def __init__(
        self,
        position_repo: PositionRepository,
        transaction_repo: TransactionRepository,
        market_data_service: MarketDataService,
    ):
        self._position_repo = position_repo
        self._transaction_repo = transaction_repo
        self._market_data = market_data_service

    def performance(self, portfolio_ids: list[str]) -> PortfolioValuation:
        """Valuation with totals across the given portfolios."""
        if not portfolio_ids:
            raise ValidationError("At least one portfolio is required")
        positions = self._position_repo.list_by_portfolios(portfolio_ids)
        prices = self._market_data.resolve_prices([p.symbol for p in positions])
        missing = {p.symbol for p in positions} - set(prices)
        if missing:
            logger.warning("No price for %s; valuing at 0", ", ".join(sorted(missing)))
        return value_positions(positions, prices)

    def allocation(self, portfolio_ids: list[str]) -> AllocationView:
        return allocation(self.performance(portfolio_ids))

    def profit_loss(self, portfolio_ids: list[str]) -> ProfitLossView:
        return profit_loss(self.performance(portfolio_ids))

    def top_holdings(
        self,
        portfolio_ids: list[str],
        limit: int = DEFAULT_TOP_HOLDINGS,
    ) -> list[PositionValuation]:
        if limit < 1:
            raise ValidationError("limit must be positive")
        return top_holdings(self.performance(portfolio_ids), limit)

    def roi(self, portfolio_ids: list[str]) -> RoiView:
        valuation = self.performance(portfolio_ids)
        fees = self._transaction_repo.sum_fees(portfolio_ids)
        return roi(valuation, fees)
