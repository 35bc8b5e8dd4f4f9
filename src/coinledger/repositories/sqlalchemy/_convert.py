"""Conversion helpers shared by the SQLAlchemy repositories."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from coinledger.core.timezone import to_utc


def to_decimal(value: Any) -> Optional[Decimal]:
    """Numeric column value to Decimal, keeping None."""
    if value is None:
        return None
    return Decimal(str(value))


def to_aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; stored values are always UTC."""
    if value is None:
        return None
    return to_utc(value)
