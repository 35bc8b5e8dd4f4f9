"""Application context holding process-wide components.

Request-scoped services (ledger, analytics) are built per request from a DB
session; the pieces that must be shared across requests and threads live
here: the market data provider, the quote cache, the position locks and the
price sync service.
"""

import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from coinledger.config.settings import Settings, get_settings
from coinledger.core.locking import KeyedLock
from coinledger.domain.models import TrackedInstrument
from coinledger.providers import (
    CoinGeckoProvider,
    MarketDataProvider,
    StubMarketDataProvider,
)
from coinledger.repositories.sqlalchemy import SqlAlchemyInstrumentRepository
from coinledger.services import PriceSyncService, QuoteCache

logger = logging.getLogger(__name__)


def build_provider(settings: Settings) -> MarketDataProvider:
    """Create the market data provider selected by settings."""
    if settings.market_data_provider == "stub":
        return StubMarketDataProvider()
    if settings.market_data_provider == "coingecko":
        return CoinGeckoProvider(
            base_url=settings.market_data_base_url,
            timeout=settings.market_data_timeout_seconds,
            api_key=settings.market_data_api_key,
        )
    raise ValueError(f"Unknown market data provider: {settings.market_data_provider}")


class AppContext:
    """
    Process-wide application components.

    Everything is constructed explicitly and handed to services; nothing
    here is a module-level singleton.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        settings: Optional[Settings] = None,
        provider: Optional[MarketDataProvider] = None,
        quote_cache: Optional[QuoteCache] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.provider = provider or build_provider(self.settings)
        self.quote_cache = quote_cache or QuoteCache(
            ttl_seconds=self.settings.quote_cache_ttl_seconds,
            max_entries=self.settings.quote_cache_max_entries,
        )
        self.locks = locks or KeyedLock()
        self.price_sync = PriceSyncService(
            provider=self.provider,
            session_factory=session_factory,
            interval_seconds=self.settings.price_sync_interval_seconds,
        )

    def seed_instruments(self) -> int:
        """Load the configured universe when the instrument table is empty."""
        session = self.session_factory()
        try:
            repo = SqlAlchemyInstrumentRepository(session)
            if repo.count() > 0:
                return 0
            for item in self.settings.tracked_instruments:
                repo.upsert(
                    TrackedInstrument(coin_id=item.coin_id, symbol=item.symbol, name=item.name)
                )
            logger.info("Seeded %d tracked instruments", len(self.settings.tracked_instruments))
            return len(self.settings.tracked_instruments)
        finally:
            session.close()

    def start(self) -> None:
        """Seed reference data and start background work."""
        self.seed_instruments()
        if self.settings.price_sync_enabled:
            self.price_sync.start()

    def shutdown(self) -> None:
        """Stop background work and release the provider."""
        self.price_sync.stop()
        close = getattr(self.provider, "close", None)
        if callable(close):
            close()
