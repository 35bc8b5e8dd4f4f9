"""SQLAlchemy implementation of TransactionRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from coinledger.core.timezone import now_utc
from coinledger.domain.models import Transaction
from coinledger.repositories.sqlalchemy.orm_models import TransactionORM
from coinledger.repositories.sqlalchemy._convert import to_decimal, to_aware


class SqlAlchemyTransactionRepository:
    """SQLAlchemy-backed transaction repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, transaction: Transaction) -> Transaction:
        """Append a new transaction."""
        orm_txn = self._to_orm(transaction)
        self._db.add(orm_txn)
        self._db.commit()
        self._db.refresh(orm_txn)
        return self._to_domain(orm_txn)

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        orm_txn = self._db.get(TransactionORM, txn_id)
        return self._to_domain(orm_txn) if orm_txn else None

    def delete(self, txn_id: str) -> bool:
        """Remove a ledger entry."""
        deleted = (
            self._db.query(TransactionORM)
            .filter(TransactionORM.txn_id == txn_id)
            .delete(synchronize_session=False)
        )
        self._db.commit()
        return deleted > 0

    def list_by_portfolio(self, portfolio_id: str) -> list[Transaction]:
        """List a portfolio's transactions, ordered by timestamp."""
        query = (
            self._db.query(TransactionORM)
            .filter(TransactionORM.portfolio_id == portfolio_id)
            .order_by(TransactionORM.timestamp, TransactionORM.created_at)
        )
        return [self._to_domain(t) for t in query.all()]

    def list_by_pair(self, portfolio_id: str, symbol: str) -> list[Transaction]:
        """List transactions for one (portfolio, symbol), ordered by timestamp."""
        query = (
            self._db.query(TransactionORM)
            .filter(
                TransactionORM.portfolio_id == portfolio_id,
                TransactionORM.symbol == symbol,
            )
            .order_by(TransactionORM.timestamp, TransactionORM.created_at)
        )
        return [self._to_domain(t) for t in query.all()]

    def latest_timestamp(self, portfolio_id: str, symbol: str) -> Optional[datetime]:
        """Timestamp of the latest transaction for a pair."""
        value = (
            self._db.query(func.max(TransactionORM.timestamp))
            .filter(
                TransactionORM.portfolio_id == portfolio_id,
                TransactionORM.symbol == symbol,
            )
            .scalar()
        )
        return to_aware(value)

    def list_recent(self, portfolio_ids: list[str], limit: int) -> list[Transaction]:
        """Newest-first transactions across portfolios."""
        if not portfolio_ids:
            return []
        query = (
            self._db.query(TransactionORM)
            .filter(TransactionORM.portfolio_id.in_(portfolio_ids))
            .order_by(TransactionORM.timestamp.desc(), TransactionORM.created_at.desc())
            .limit(limit)
        )
        return [self._to_domain(t) for t in query.all()]

    def sum_fees(self, portfolio_ids: list[str]) -> Decimal:
        """Total fees paid across portfolios."""
        if not portfolio_ids:
            return Decimal("0")
        fees = (
            self._db.query(TransactionORM.fee)
            .filter(TransactionORM.portfolio_id.in_(portfolio_ids))
            .all()
        )
        return sum((to_decimal(f) or Decimal("0") for (f,) in fees), Decimal("0"))

    def _to_orm(self, txn: Transaction) -> TransactionORM:
        """Convert domain model to ORM model."""
        return TransactionORM(
            txn_id=txn.txn_id,
            portfolio_id=txn.portfolio_id,
            txn_type=txn.txn_type,
            symbol=txn.symbol,
            quantity=txn.quantity,
            price=txn.price,
            fee=txn.fee,
            timestamp=txn.timestamp,
            note=txn.note,
            created_at=txn.created_at or now_utc(),
        )

    @staticmethod
    def _to_domain(orm: TransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            txn_id=orm.txn_id,
            portfolio_id=orm.portfolio_id,
            txn_type=orm.txn_type,
            symbol=orm.symbol,
            quantity=to_decimal(orm.quantity),
            price=to_decimal(orm.price),
            timestamp=to_aware(orm.timestamp),
            fee=to_decimal(orm.fee) or Decimal("0"),
            note=orm.note,
            created_at=to_aware(orm.created_at),
        )
