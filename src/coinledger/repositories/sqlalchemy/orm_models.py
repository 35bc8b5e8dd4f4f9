"""SQLAlchemy ORM model definitions."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    Numeric,
    UniqueConstraint,
    Index,
    Enum as SqlEnum,
)
from sqlalchemy.orm import relationship

from coinledger.repositories.sqlalchemy.database import Base
from coinledger.domain.models.enums import TransactionType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Quantities and prices span sub-satoshi amounts to six-figure prices
QUANTITY = Numeric(precision=28, scale=10)
MONEY = Numeric(precision=28, scale=10)


class PortfolioORM(Base):
    """SQLAlchemy model for Portfolio."""

    __tablename__ = "portfolios"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_portfolio_owner_name"),)

    portfolio_id = Column(String(36), primary_key=True)
    owner_id = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    transactions = relationship(
        "TransactionORM",
        back_populates="portfolio",
        cascade="all, delete-orphan",
    )
    positions = relationship(
        "PositionORM",
        back_populates="portfolio",
        cascade="all, delete-orphan",
    )


class TransactionORM(Base):
    """SQLAlchemy model for Transaction (ledger entry)."""

    __tablename__ = "transactions"
    __table_args__ = (Index("ix_transactions_pair_time", "portfolio_id", "symbol", "timestamp"),)

    txn_id = Column(String(36), primary_key=True)
    portfolio_id = Column(
        String(36),
        ForeignKey("portfolios.portfolio_id", ondelete="CASCADE"),
        nullable=False,
    )
    txn_type = Column(SqlEnum(TransactionType), nullable=False)
    symbol = Column(String(20), nullable=False)
    quantity = Column(QUANTITY, nullable=False)
    price = Column(MONEY, nullable=False)
    fee = Column(MONEY, nullable=False, default=Decimal("0"))
    timestamp = Column(DateTime(timezone=True), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    portfolio = relationship("PortfolioORM", back_populates="transactions")


class PositionORM(Base):
    """SQLAlchemy model for Position (derived holdings)."""

    __tablename__ = "positions"
    __table_args__ = (UniqueConstraint("portfolio_id", "symbol", name="uq_position_pair"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    portfolio_id = Column(
        String(36),
        ForeignKey("portfolios.portfolio_id", ondelete="CASCADE"),
        nullable=False,
    )
    symbol = Column(String(20), nullable=False)
    name = Column(String(255), nullable=True)
    quantity = Column(QUANTITY, nullable=False)
    average_cost = Column(MONEY, nullable=False)
    first_txn_id = Column(String(36), nullable=True)
    last_txn_id = Column(String(36), nullable=True)
    opened_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    portfolio = relationship("PortfolioORM", back_populates="positions")


class TrackedInstrumentORM(Base):
    """SQLAlchemy model for the tracked instrument universe."""

    __tablename__ = "tracked_instruments"

    coin_id = Column(String(100), primary_key=True)
    symbol = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class PriceQuoteORM(Base):
    """SQLAlchemy model for the latest persisted price per instrument."""

    __tablename__ = "price_quotes"

    coin_id = Column(String(100), primary_key=True)
    symbol = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    current_price = Column(MONEY, nullable=False)
    market_cap = Column(Numeric(precision=38, scale=2), nullable=True)
    volume_24h = Column(Numeric(precision=38, scale=2), nullable=True)
    price_change_24h = Column(MONEY, nullable=True)
    price_change_percentage_24h = Column(Numeric(precision=18, scale=8), nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False)
