"""Repository protocol definitions (interfaces)."""

from coinledger.repositories.protocols.portfolio_repo import PortfolioRepository
from coinledger.repositories.protocols.transaction_repo import TransactionRepository
from coinledger.repositories.protocols.position_repo import PositionRepository
from coinledger.repositories.protocols.instrument_repo import InstrumentRepository
from coinledger.repositories.protocols.price_repo import PriceRepository

__all__ = [
    "PortfolioRepository",
    "TransactionRepository",
    "PositionRepository",
    "InstrumentRepository",
    "PriceRepository",
]
