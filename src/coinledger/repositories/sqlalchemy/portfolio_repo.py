"""SQLAlchemy implementation of PortfolioRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from coinledger.core.timezone import now_utc
from coinledger.domain.models import Portfolio
from coinledger.repositories.sqlalchemy.orm_models import PortfolioORM
from coinledger.repositories.sqlalchemy._convert import to_aware


class SqlAlchemyPortfolioRepository:
    """SQLAlchemy-backed portfolio repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, portfolio: Portfolio) -> Portfolio:
        """Persist a new portfolio."""
        orm_portfolio = PortfolioORM(
            portfolio_id=portfolio.portfolio_id,
            owner_id=portfolio.owner_id,
            name=portfolio.name,
            description=portfolio.description,
            created_at=portfolio.created_at or now_utc(),
        )
        self._db.add(orm_portfolio)
        self._db.commit()
        self._db.refresh(orm_portfolio)
        return self._to_domain(orm_portfolio)

    def get_by_id(self, portfolio_id: str) -> Optional[Portfolio]:
        """Retrieve portfolio by ID."""
        orm_portfolio = self._db.get(PortfolioORM, portfolio_id)
        return self._to_domain(orm_portfolio) if orm_portfolio else None

    def get_by_owner_and_name(self, owner_id: str, name: str) -> Optional[Portfolio]:
        """Retrieve an owner's portfolio by name."""
        orm_portfolio = (
            self._db.query(PortfolioORM)
            .filter(PortfolioORM.owner_id == owner_id, PortfolioORM.name == name)
            .first()
        )
        return self._to_domain(orm_portfolio) if orm_portfolio else None

    def list_all(self, owner_id: Optional[str] = None) -> list[Portfolio]:
        """List portfolios ordered by creation time."""
        query = self._db.query(PortfolioORM)
        if owner_id is not None:
            query = query.filter(PortfolioORM.owner_id == owner_id)
        query = query.order_by(PortfolioORM.created_at, PortfolioORM.name)
        return [self._to_domain(p) for p in query.all()]

    def update(self, portfolio: Portfolio) -> Portfolio:
        """Update an existing portfolio's name and description."""
        orm_portfolio = self._db.get(PortfolioORM, portfolio.portfolio_id)
        if orm_portfolio is None:
            raise ValueError(f"Portfolio not found: {portfolio.portfolio_id}")

        orm_portfolio.name = portfolio.name
        orm_portfolio.description = portfolio.description

        self._db.commit()
        self._db.refresh(orm_portfolio)
        return self._to_domain(orm_portfolio)

    def delete(self, portfolio_id: str) -> bool:
        """Delete a portfolio; transactions and positions go with it."""
        orm_portfolio = self._db.get(PortfolioORM, portfolio_id)
        if orm_portfolio is None:
            return False
        self._db.delete(orm_portfolio)
        self._db.commit()
        return True

    @staticmethod
    def _to_domain(orm: PortfolioORM) -> Portfolio:
        """Convert ORM model to domain model."""
        return Portfolio(
            portfolio_id=orm.portfolio_id,
            owner_id=orm.owner_id,
            name=orm.name,
            description=orm.description,
            created_at=to_aware(orm.created_at),
        )
