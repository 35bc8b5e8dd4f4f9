"""Portfolio repository protocol."""

from typing import Protocol, Optional

from coinledger.domain.models import Portfolio


class PortfolioRepository(Protocol):
    """Interface for portfolio data access."""

    def create(self, portfolio: Portfolio) -> Portfolio:
        """Persist a new portfolio."""
        ...

    def get_by_id(self, portfolio_id: str) -> Optional[Portfolio]:
        """Retrieve portfolio by ID."""
        ...

    def get_by_owner_and_name(self, owner_id: str, name: str) -> Optional[Portfolio]:
        """Retrieve an owner's portfolio by name."""
        ...

    def list_all(self, owner_id: Optional[str] = None) -> list[Portfolio]:
        """List portfolios, optionally restricted to one owner."""
        ...

    def update(self, portfolio: Portfolio) -> Portfolio:
        """Persist name and description changes."""
        ...

    def delete(self, portfolio_id: str) -> bool:
        """Delete a portfolio with its transactions and positions."""
        ...
