"""Portfolio domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Portfolio:
    """
    Owner-scoped container of transactions and positions.

    Deleting a portfolio cascades to everything it owns.
    """

    portfolio_id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
