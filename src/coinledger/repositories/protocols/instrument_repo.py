"""Tracked instrument repository protocol."""

from typing import Protocol, Optional

from coinledger.domain.models import TrackedInstrument


class InstrumentRepository(Protocol):
    """Interface for the tracked instrument universe."""

    def list_active(self) -> list[TrackedInstrument]:
        ...

    def get_by_symbol(self, symbol: str) -> Optional[TrackedInstrument]:
        ...

    def count(self) -> int:
        ...

    def upsert(self, instrument: TrackedInstrument) -> TrackedInstrument:
        ...
