"""SQLAlchemy repository implementations."""

from coinledger.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    build_engine,
    init_db,
    reset_database,
    Base,
)
from coinledger.repositories.sqlalchemy.portfolio_repo import SqlAlchemyPortfolioRepository
from coinledger.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository
from coinledger.repositories.sqlalchemy.position_repo import SqlAlchemyPositionRepository
from coinledger.repositories.sqlalchemy.instrument_repo import SqlAlchemyInstrumentRepository
from coinledger.repositories.sqlalchemy.price_repo import SqlAlchemyPriceRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "build_engine",
    "init_db",
    "reset_database",
    "Base",
    "SqlAlchemyPortfolioRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyPositionRepository",
    "SqlAlchemyInstrumentRepository",
    "SqlAlchemyPriceRepository",
]
