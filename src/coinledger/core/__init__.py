"""Core utilities and shared functionality."""

from coinledger.core.timezone import (
    now_utc,
    to_utc,
    parse_datetime_utc,
    from_epoch_millis,
    UTC,
)
from coinledger.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    InsufficientHoldingsError,
    UpstreamProviderError,
    ReconciliationConflict,
)
from coinledger.core.locking import KeyedLock

__all__ = [
    "now_utc",
    "to_utc",
    "parse_datetime_utc",
    "from_epoch_millis",
    "UTC",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "InsufficientHoldingsError",
    "UpstreamProviderError",
    "ReconciliationConflict",
    "KeyedLock",
]
