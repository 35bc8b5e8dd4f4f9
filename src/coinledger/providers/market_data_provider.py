"""Market data provider protocol."""

from typing import Protocol

from coinledger.domain.views import (
    SimplePrice,
    CoinPrice,
    CoinDetail,
    SearchResult,
    TrendingCoin,
    PricePoint,
)


class MarketDataProvider(Protocol):
    """
    Protocol for external price-quote providers.

    Implementations are stateless apart from connection configuration. Every
    failure (network, timeout, non-2xx, malformed payload) must surface as
    ``UpstreamProviderError``.
    """

    name: str

    def get_simple_prices(self, coin_ids: list[str]) -> dict[str, SimplePrice]:
        """
        Batch price lookup by coin id.

        Coins the provider does not know are omitted from the result.
        """
        ...

    def get_markets(self, coin_ids: list[str]) -> list[CoinPrice]:
        """Market snapshots for the given coin ids."""
        ...

    def get_top_coins(self, limit: int) -> list[CoinPrice]:
        """Top coins ordered by market capitalization."""
        ...

    def get_coin_detail(self, coin_id: str) -> CoinDetail:
        """Detailed information for a single coin."""
        ...

    def search(self, query: str) -> list[SearchResult]:
        """Free-text search."""
        ...

    def get_trending(self) -> list[TrendingCoin]:
        """Currently trending coins."""
        ...

    def get_market_chart(self, coin_id: str, days: int) -> list[PricePoint]:
        """Historical price series covering the last ``days`` days."""
        ...
