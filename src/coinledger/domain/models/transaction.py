"""Transaction domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from coinledger.domain.models.enums import TransactionType


@dataclass(frozen=True)
class Transaction:
    """
    Ledger transaction entry (source of truth).

    Immutable once recorded. Positions are fully derivable by replaying a
    portfolio's transactions in timestamp order.
    """

    txn_id: str
    portfolio_id: str
    txn_type: TransactionType
    symbol: str
    quantity: Decimal
    price: Decimal
    timestamp: datetime
    fee: Decimal = field(default_factory=lambda: Decimal("0"))
    note: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.txn_type, str):
            object.__setattr__(self, "txn_type", TransactionType(self.txn_type))

    @property
    def gross_amount(self) -> Decimal:
        """Quantity times unit price, before fees."""
        return self.quantity * self.price
