"""Position models for derived holdings."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Position:
    """
    Derived holding per portfolio/symbol.

    Never edited directly; only the reconciler creates, updates or removes it.
    ``version`` increments on every write and guards against lost updates.
    """

    portfolio_id: str
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    name: Optional[str] = None
    first_txn_id: Optional[str] = None
    last_txn_id: Optional[str] = None
    opened_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.average_cost


@dataclass(frozen=True)
class PositionRemoved:
    """Result of a SELL that closed a position."""

    portfolio_id: str
    symbol: str
    sold_quantity: Decimal
    average_cost: Decimal
    discarded_cost_basis: Decimal = field(default_factory=lambda: Decimal("0"))
