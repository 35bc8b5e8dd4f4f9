"""Transaction repository protocol."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Optional

from coinledger.domain.models import Transaction


class TransactionRepository(Protocol):
    """Interface for transaction (ledger) data access."""

    def create(self, transaction: Transaction) -> Transaction:
        """Append a new transaction."""
        ...

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        ...

    def delete(self, txn_id: str) -> bool:
        """Remove a ledger entry."""
        ...

    def list_by_portfolio(self, portfolio_id: str) -> list[Transaction]:
        """List a portfolio's transactions, ordered by timestamp."""
        ...

    def list_by_pair(self, portfolio_id: str, symbol: str) -> list[Transaction]:
        """List transactions for one (portfolio, symbol), ordered by timestamp."""
        ...

    def latest_timestamp(self, portfolio_id: str, symbol: str) -> Optional[datetime]:
        """Timestamp of the latest transaction for a pair."""
        ...

    def list_recent(self, portfolio_ids: list[str], limit: int) -> list[Transaction]:
        """Newest-first transactions across portfolios."""
        ...

    def sum_fees(self, portfolio_ids: list[str]) -> Decimal:
        """Total fees paid across portfolios."""
        ...
