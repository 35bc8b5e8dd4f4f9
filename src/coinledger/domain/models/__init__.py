"""Domain models package."""

from coinledger.domain.models.enums import TransactionType
from coinledger.domain.models.portfolio import Portfolio
from coinledger.domain.models.transaction import Transaction
from coinledger.domain.models.position import Position, PositionRemoved
from coinledger.domain.models.price import PriceQuote, TrackedInstrument

__all__ = [
    "TransactionType",
    "Portfolio",
    "Transaction",
    "Position",
    "PositionRemoved",
    "PriceQuote",
    "TrackedInstrument",
]
