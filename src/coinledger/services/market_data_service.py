"""Market data service: cached provider lookups and price resolution."""

import logging
from typing import Optional

from coinledger.core.exceptions import UpstreamProviderError, ValidationError
from coinledger.core.timezone import now_utc
from coinledger.domain.models import PriceQuote
from coinledger.domain.views import (
    CoinPrice,
    CoinDetail,
    SearchResult,
    TrendingCoin,
    HistoricalSeries,
    PriceSnapshot,
)
from coinledger.providers.market_data_provider import MarketDataProvider
from coinledger.providers.symbols import normalize_symbol, symbol_to_coin_id
from coinledger.repositories.protocols import PriceRepository, InstrumentRepository
from coinledger.services.quote_cache import QuoteCache

logger = logging.getLogger(__name__)

MAX_TOP_LIMIT = 250
DEFAULT_PRICE_MAX_AGE_SECONDS = 120


class MarketDataService:
    """
    Service for fetching market data.

    Wraps the provider with the shared QuoteCache. Upstream failures surface
    as UpstreamProviderError, except in ``resolve_prices`` which prefers stale
    persisted prices over no prices.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        cache: Optional[QuoteCache] = None,
        price_repo: Optional[PriceRepository] = None,
        instrument_repo: Optional[InstrumentRepository] = None,
        price_max_age_seconds: int = DEFAULT_PRICE_MAX_AGE_SECONDS,
    ):
        self._provider = provider
        self._cache = cache or QuoteCache()
        self._price_repo = price_repo
        self._instrument_repo = instrument_repo
        self._price_max_age = price_max_age_seconds

    def coin_id_for(self, symbol: str) -> str:
        """Resolve a ticker to a provider coin id."""
        if self._instrument_repo is not None:
            instrument = self._instrument_repo.get_by_symbol(normalize_symbol(symbol))
            if instrument:
                return instrument.coin_id
        return symbol_to_coin_id(symbol)

    def get_prices(self, symbols: list[str]) -> dict[str, CoinPrice]:
        """
        Fetch market snapshots for symbols with caching.

        Returns dict mapping upper-case symbol -> CoinPrice. Unknown symbols
        are omitted.
        """
        wanted = sorted({normalize_symbol(s) for s in symbols if normalize_symbol(s)})
        if not wanted:
            return {}

        def fetch() -> dict[str, CoinPrice]:
            # Several tickers may alias one coin id
            ids: dict[str, list[str]] = {}
            for symbol in wanted:
                ids.setdefault(self.coin_id_for(symbol), []).append(symbol)
            markets = self._provider.get_markets(list(ids))
            result: dict[str, CoinPrice] = {}
            for coin in markets:
                for symbol in ids.get(coin.coin_id, [coin.symbol.upper()]):
                    result[symbol] = coin
            return result

        return self._cache.get(QuoteCache.prices_key(wanted), fetch)

    def get_coin_detail(self, symbol: str) -> CoinDetail:
        """Detailed information for one symbol."""
        coin_id = self.coin_id_for(symbol)
        return self._cache.get(
            QuoteCache.detail_key(coin_id),
            lambda: self._provider.get_coin_detail(coin_id),
        )

    def search(self, query: str) -> list[SearchResult]:
        """Free-text coin search."""
        if not query or not query.strip():
            raise ValidationError("Search query is required")
        return self._cache.get(
            QuoteCache.search_key(query),
            lambda: self._provider.search(query.strip()),
        )

    def get_trending(self) -> list[TrendingCoin]:
        return self._cache.get(QuoteCache.trending_key(), self._provider.get_trending)

    def get_top_coins(self, limit: int = 100) -> list[CoinPrice]:
        """Top coins by market cap."""
        if limit < 1 or limit > MAX_TOP_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_TOP_LIMIT}")
        return self._cache.get(
            QuoteCache.top_key(limit),
            lambda: self._provider.get_top_coins(limit),
        )

    def get_historical(self, symbol: str, days: int = 7) -> HistoricalSeries:
        """Historical price series for the last ``days`` days."""
        if days < 1:
            raise ValidationError("days must be positive")
        symbol = normalize_symbol(symbol)
        coin_id = self.coin_id_for(symbol)
        points = self._cache.get(
            QuoteCache.historical_key(symbol, days),
            lambda: self._provider.get_market_chart(coin_id, days),
        )
        return HistoricalSeries(symbol=symbol, days=days, prices=points)

    def list_stored_prices(self) -> list[PriceQuote]:
        """Persisted prices written by the sync service."""
        if self._price_repo is None:
            return []
        return self._price_repo.list_all()

    def resolve_prices(self, symbols: list[str]) -> dict[str, PriceSnapshot]:
        """
        Resolve the best available price per symbol for valuation.

        Fresh persisted quotes win; the rest are fetched live through the
        cache. If that fails, stale persisted quotes are served instead.
        Symbols with no price at all are omitted.
        """
        wanted = sorted({normalize_symbol(s) for s in symbols if normalize_symbol(s)})
        if not wanted:
            return {}

        now = now_utc()
        stored = self._price_repo.get_by_symbols(wanted) if self._price_repo else {}
        result: dict[str, PriceSnapshot] = {}
        missing: list[str] = []

        for symbol in wanted:
            quote = stored.get(symbol)
            if quote and (now - quote.last_updated).total_seconds() <= self._price_max_age:
                result[symbol] = self._snapshot(quote, "store")
            else:
                missing.append(symbol)

        if not missing:
            return result

        try:
            live = self.get_prices(missing)
        except UpstreamProviderError as exc:
            logger.warning("Live price fetch failed, serving stored prices: %s", exc)
            live = {}

        for symbol in missing:
            coin = live.get(symbol)
            if coin is not None:
                result[symbol] = PriceSnapshot(
                    symbol=symbol,
                    price=coin.current_price,
                    as_of=now,
                    name=coin.name,
                    change_percentage_24h=coin.price_change_percentage_24h,
                    source="live",
                )
            elif symbol in stored:
                result[symbol] = self._snapshot(stored[symbol], "stale")

        return result

    @staticmethod
    def _snapshot(quote: PriceQuote, source: str) -> PriceSnapshot:
        return PriceSnapshot(
            symbol=quote.symbol,
            price=quote.current_price,
            as_of=quote.last_updated,
            name=quote.name,
            change_percentage_24h=quote.price_change_percentage_24h,
            source=source,
        )
