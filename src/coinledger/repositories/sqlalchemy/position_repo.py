"""SQLAlchemy implementation of PositionRepository."""

import logging
from dataclasses import replace
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coinledger.core.exceptions import ReconciliationConflict
from coinledger.domain.models import Position
from coinledger.repositories.sqlalchemy.orm_models import PositionORM
from coinledger.repositories.sqlalchemy._convert import to_decimal, to_aware

logger = logging.getLogger(__name__)


class SqlAlchemyPositionRepository:
    """
    SQLAlchemy-backed position repository with optimistic versioning.

    Inserts rely on the (portfolio_id, symbol) unique constraint; updates and
    deletes are conditional on the version the caller read.
    """

    def __init__(self, db: Session):
        self._db = db

    def get(self, portfolio_id: str, symbol: str) -> Optional[Position]:
        """Retrieve the position for a pair."""
        orm_pos = (
            self._db.query(PositionORM)
            .filter(
                PositionORM.portfolio_id == portfolio_id,
                PositionORM.symbol == symbol,
            )
            .populate_existing()
            .first()
        )
        return self._to_domain(orm_pos) if orm_pos else None

    def list_by_portfolios(self, portfolio_ids: list[str]) -> list[Position]:
        """List positions of one or more portfolios."""
        if not portfolio_ids:
            return []
        orm_positions = (
            self._db.query(PositionORM)
            .filter(PositionORM.portfolio_id.in_(portfolio_ids))
            .order_by(PositionORM.portfolio_id, PositionORM.symbol)
            .all()
        )
        return [self._to_domain(p) for p in orm_positions]

    def save(self, position: Position) -> Position:
        """Insert (version 0) or conditionally update a position."""
        if position.version == 0:
            return self._insert(position)

        updated = (
            self._db.query(PositionORM)
            .filter(
                PositionORM.portfolio_id == position.portfolio_id,
                PositionORM.symbol == position.symbol,
                PositionORM.version == position.version,
            )
            .update(
                {
                    PositionORM.quantity: position.quantity,
                    PositionORM.average_cost: position.average_cost,
                    PositionORM.name: position.name,
                    PositionORM.first_txn_id: position.first_txn_id,
                    PositionORM.last_txn_id: position.last_txn_id,
                    PositionORM.opened_at: position.opened_at,
                    PositionORM.updated_at: position.updated_at,
                    PositionORM.version: position.version + 1,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            self._db.rollback()
            raise ReconciliationConflict(position.portfolio_id, position.symbol)
        self._db.commit()
        return replace(position, version=position.version + 1)

    def delete(self, position: Position) -> None:
        """Delete a position if its version is still current."""
        deleted = (
            self._db.query(PositionORM)
            .filter(
                PositionORM.portfolio_id == position.portfolio_id,
                PositionORM.symbol == position.symbol,
                PositionORM.version == position.version,
            )
            .delete(synchronize_session=False)
        )
        if deleted == 0:
            self._db.rollback()
            raise ReconciliationConflict(position.portfolio_id, position.symbol)
        self._db.commit()

    def delete_by_portfolio(self, portfolio_id: str) -> None:
        """Delete all positions of a portfolio (for rebuild)."""
        self._db.query(PositionORM).filter(
            PositionORM.portfolio_id == portfolio_id
        ).delete(synchronize_session=False)
        self._db.commit()

    def _insert(self, position: Position) -> Position:
        orm_pos = PositionORM(
            portfolio_id=position.portfolio_id,
            symbol=position.symbol,
            name=position.name,
            quantity=position.quantity,
            average_cost=position.average_cost,
            first_txn_id=position.first_txn_id,
            last_txn_id=position.last_txn_id,
            opened_at=position.opened_at,
            updated_at=position.updated_at,
            version=1,
        )
        self._db.add(orm_pos)
        try:
            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            logger.debug("Insert conflict on %s/%s: %s", position.portfolio_id, position.symbol, exc)
            raise ReconciliationConflict(position.portfolio_id, position.symbol) from exc
        return replace(position, version=1)

    @staticmethod
    def _to_domain(orm: PositionORM) -> Position:
        """Convert ORM model to domain model."""
        return Position(
            portfolio_id=orm.portfolio_id,
            symbol=orm.symbol,
            quantity=to_decimal(orm.quantity),
            average_cost=to_decimal(orm.average_cost),
            name=orm.name,
            first_txn_id=orm.first_txn_id,
            last_txn_id=orm.last_txn_id,
            opened_at=to_aware(orm.opened_at),
            updated_at=to_aware(orm.updated_at),
            version=orm.version,
        )
