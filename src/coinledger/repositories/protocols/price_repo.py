"""Price store repository protocol."""

from typing import Protocol, Optional

from coinledger.domain.models import PriceQuote


class PriceRepository(Protocol):
    """Interface for persisted latest prices."""

    def upsert(self, quote: PriceQuote) -> PriceQuote:
        """Insert or replace the quote for ``quote.coin_id`` atomically."""
        ...

    def get_by_coin_id(self, coin_id: str) -> Optional[PriceQuote]:
        ...

    def get_by_symbols(self, symbols: list[str]) -> dict[str, PriceQuote]:
        """Quotes keyed by upper-case symbol."""
        ...

    def list_all(self) -> list[PriceQuote]:
        """All quotes, largest market cap first."""
        ...
