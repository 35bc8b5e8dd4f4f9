"""View models for portfolio valuation and analytics."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


def _zero() -> Decimal:
    return Decimal("0")


@dataclass
class PositionValuation:
    """A position enriched with its current price."""

    portfolio_id: str
    symbol: str
    name: Optional[str]
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal
    current_value: Decimal
    cost_basis: Decimal
    profit_loss: Decimal
    profit_loss_percentage: Decimal
    price_change_percentage_24h: Decimal = field(default_factory=_zero)
    change_24h: Decimal = field(default_factory=_zero)
    change_24h_contribution: Decimal = field(default_factory=_zero)
    opened_at: Optional[datetime] = None


@dataclass
class PortfolioValuation:
    """Positions with totals across the set."""

    positions: list[PositionValuation] = field(default_factory=list)
    total_value: Decimal = field(default_factory=_zero)
    total_cost: Decimal = field(default_factory=_zero)
    total_profit_loss: Decimal = field(default_factory=_zero)
    total_profit_loss_percentage: Decimal = field(default_factory=_zero)
    weighted_change_24h: Decimal = field(default_factory=_zero)
    change_24h: Decimal = field(default_factory=_zero)
    as_of: Optional[datetime] = None


@dataclass
class AllocationItem:
    """Single item in allocation breakdown."""

    symbol: str
    name: Optional[str]
    quantity: Decimal
    value: Decimal
    percentage: Decimal


@dataclass
class AllocationView:
    """Portfolio allocation breakdown."""

    items: list[AllocationItem] = field(default_factory=list)
    total_value: Decimal = field(default_factory=_zero)
    as_of: Optional[datetime] = None


@dataclass
class ProfitLossView:
    """P&L per asset plus ranked winners and losers."""

    valuation: PortfolioValuation
    assets: list[PositionValuation] = field(default_factory=list)
    top_winners: list[PositionValuation] = field(default_factory=list)
    top_losers: list[PositionValuation] = field(default_factory=list)
    winners_count: int = 0
    losers_count: int = 0


@dataclass
class RoiView:
    """Simplified return on investment."""

    total_invested: Decimal = field(default_factory=_zero)
    total_current_value: Decimal = field(default_factory=_zero)
    total_fees: Decimal = field(default_factory=_zero)
    net_profit_loss: Decimal = field(default_factory=_zero)
    roi: Decimal = field(default_factory=_zero)
    days_held: int = 0
    annualized_roi: Decimal = field(default_factory=_zero)
