"""Position repository protocol."""

from typing import Protocol, Optional

from coinledger.domain.models import Position


class PositionRepository(Protocol):
    """
    Interface for derived position data access.

    Writes are conditional on ``Position.version``: a write against a version
    that is no longer current raises ``ReconciliationConflict``.
    """

    def get(self, portfolio_id: str, symbol: str) -> Optional[Position]:
        """Retrieve the position for a pair."""
        ...

    def list_by_portfolios(self, portfolio_ids: list[str]) -> list[Position]:
        """List positions of one or more portfolios."""
        ...

    def save(self, position: Position) -> Position:
        """
        Insert (version 0) or update (version N) a position.

        Returns the stored position with its version incremented.
        """
        ...

    def delete(self, position: Position) -> None:
        """Delete a position if its version is still current."""
        ...

    def delete_by_portfolio(self, portfolio_id: str) -> None:
        """Delete all positions of a portfolio (for rebuild)."""
        ...
