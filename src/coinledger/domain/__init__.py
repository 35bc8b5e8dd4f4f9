"""Domain layer - pure business models with no external dependencies."""

from coinledger.domain.models import (
    Portfolio,
    Transaction,
    Position,
    PositionRemoved,
    PriceQuote,
    TrackedInstrument,
    TransactionType,
)

__all__ = [
    "Portfolio",
    "Transaction",
    "Position",
    "PositionRemoved",
    "PriceQuote",
    "TrackedInstrument",
    "TransactionType",
]
