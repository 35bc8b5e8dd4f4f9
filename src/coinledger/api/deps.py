"""Dependency injection for FastAPI."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from coinledger.app_context import AppContext
from coinledger.repositories.sqlalchemy.database import get_db
from coinledger.repositories.sqlalchemy import (
    SqlAlchemyPortfolioRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemyPositionRepository,
    SqlAlchemyInstrumentRepository,
    SqlAlchemyPriceRepository,
)
from coinledger.services import (
    LedgerReconciler,
    LedgerService,
    MarketDataService,
    AnalysisService,
    PriceSyncService,
)


def get_app_context(request: Request) -> AppContext:
    """Provide the process-wide AppContext created at startup."""
    return request.app.state.context


def get_portfolio_repo(db: Session = Depends(get_db)) -> SqlAlchemyPortfolioRepository:
    """Provide PortfolioRepository instance."""
    return SqlAlchemyPortfolioRepository(db)


def get_transaction_repo(db: Session = Depends(get_db)) -> SqlAlchemyTransactionRepository:
    """Provide TransactionRepository instance."""
    return SqlAlchemyTransactionRepository(db)


def get_position_repo(db: Session = Depends(get_db)) -> SqlAlchemyPositionRepository:
    """Provide PositionRepository instance."""
    return SqlAlchemyPositionRepository(db)


def get_instrument_repo(db: Session = Depends(get_db)) -> SqlAlchemyInstrumentRepository:
    return SqlAlchemyInstrumentRepository(db)


def get_price_repo(db: Session = Depends(get_db)) -> SqlAlchemyPriceRepository:
    return SqlAlchemyPriceRepository(db)


def get_ledger_service(
    context: AppContext = Depends(get_app_context),
    portfolio_repo: SqlAlchemyPortfolioRepository = Depends(get_portfolio_repo),
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
    position_repo: SqlAlchemyPositionRepository = Depends(get_position_repo),
    instrument_repo: SqlAlchemyInstrumentRepository = Depends(get_instrument_repo),
) -> LedgerService:
    """Provide LedgerService sharing the process-wide position locks."""
    return LedgerService(
        portfolio_repo=portfolio_repo,
        transaction_repo=transaction_repo,
        position_repo=position_repo,
        reconciler=LedgerReconciler(position_repo, locks=context.locks),
        instrument_repo=instrument_repo,
        strict_sells=context.settings.strict_sells,
    )


def get_market_data_service(
    context: AppContext = Depends(get_app_context),
    price_repo: SqlAlchemyPriceRepository = Depends(get_price_repo),
    instrument_repo: SqlAlchemyInstrumentRepository = Depends(get_instrument_repo),
) -> MarketDataService:
    """Provide MarketDataService backed by the shared quote cache."""
    return MarketDataService(
        provider=context.provider,
        cache=context.quote_cache,
        price_repo=price_repo,
        instrument_repo=instrument_repo,
        price_max_age_seconds=context.settings.price_max_age_seconds,
    )


def get_analysis_service(
    position_repo: SqlAlchemyPositionRepository = Depends(get_position_repo),
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
    market_data_service: MarketDataService = Depends(get_market_data_service),
) -> AnalysisService:
    """Provide AnalysisService instance."""
    return AnalysisService(
        position_repo=position_repo,
        transaction_repo=transaction_repo,
        market_data_service=market_data_service,
    )


def get_price_sync_service(context: AppContext = Depends(get_app_context)) -> PriceSyncService:
    return context.price_sync
