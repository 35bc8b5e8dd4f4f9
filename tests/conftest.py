"""
Pytest configuration and fixtures for coinledger tests.

This module provides:
- In-memory SQLite database fixtures
- Deterministic, failing and recording market data providers
- Factory helpers for portfolios and trades
- Service and repository fixtures
- A FastAPI test client wired to the test database
"""

import threading
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from coinledger.main import app
from coinledger.api.deps import get_app_context
from coinledger.app_context import AppContext
from coinledger.config.settings import Settings, set_settings, reset_settings
from coinledger.core.exceptions import UpstreamProviderError
from coinledger.core.locking import KeyedLock
from coinledger.core.timezone import UTC
from coinledger.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from coinledger.repositories.sqlalchemy import orm_models  # noqa: F401
from coinledger.repositories.sqlalchemy import (
    SqlAlchemyPortfolioRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemyPositionRepository,
    SqlAlchemyInstrumentRepository,
    SqlAlchemyPriceRepository,
)
from coinledger.domain.models import Portfolio, TrackedInstrument, TransactionType
from coinledger.domain.views import (
    SimplePrice,
    CoinPrice,
    CoinDetail,
    SearchResult,
    TrendingCoin,
    PricePoint,
)
from coinledger.services import (
    LedgerReconciler,
    LedgerService,
    QuoteCache,
    MarketDataService,
    AnalysisService,
    TradeRequest,
    TradeResult,
)


# =============================================================================
# TIME HELPERS
# =============================================================================


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create an aware UTC datetime."""
    return UTC.localize(datetime(year, month, day, hour, minute, second))


class FakeClock:
    """Manually advanced monotonic clock for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_session(session_factory) -> Session:
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def portfolio_repo(test_session) -> SqlAlchemyPortfolioRepository:
    return SqlAlchemyPortfolioRepository(test_session)


@pytest.fixture
def transaction_repo(test_session) -> SqlAlchemyTransactionRepository:
    return SqlAlchemyTransactionRepository(test_session)


@pytest.fixture
def position_repo(test_session) -> SqlAlchemyPositionRepository:
    return SqlAlchemyPositionRepository(test_session)


@pytest.fixture
def instrument_repo(test_session) -> SqlAlchemyInstrumentRepository:
    return SqlAlchemyInstrumentRepository(test_session)


@pytest.fixture
def price_repo(test_session) -> SqlAlchemyPriceRepository:
    return SqlAlchemyPriceRepository(test_session)


@pytest.fixture
def seeded_instruments(instrument_repo) -> list[TrackedInstrument]:
    """Seed a small instrument universe."""
    items = [
        TrackedInstrument(coin_id="bitcoin", symbol="BTC", name="Bitcoin"),
        TrackedInstrument(coin_id="ethereum", symbol="ETH", name="Ethereum"),
        TrackedInstrument(coin_id="solana", symbol="SOL", name="Solana"),
    ]
    return [instrument_repo.upsert(i) for i in items]


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicMarketProvider:
    """
    Deterministic market data provider for testing.

    Provides fixed prices with no randomness and records every call so tests
    can assert how often upstream was hit.
    """

    name = "deterministic"

    FIXED_PRICES = {
        "bitcoin": ("BTC", "Bitcoin", Decimal("67000"), Decimal("2.5")),
        "ethereum": ("ETH", "Ethereum", Decimal("3500"), Decimal("-1.0")),
        "solana": ("SOL", "Solana", Decimal("150"), Decimal("4.0")),
    }

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self._lock = threading.Lock()

    def _record(self, operation: str, *args) -> None:
        with self._lock:
            self.calls.append((operation, args))

    def call_count(self, operation: Optional[str] = None) -> int:
        with self._lock:
            return len([c for c in self.calls if operation is None or c[0] == operation])

    def get_simple_prices(self, coin_ids: list[str]) -> dict[str, SimplePrice]:
        self._record("simple_price", tuple(coin_ids))
        return {
            coin_id: SimplePrice(
                coin_id=coin_id,
                price=self.FIXED_PRICES[coin_id][2],
                market_cap=Decimal("1000000"),
                volume_24h=Decimal("5000"),
                change_percentage_24h=self.FIXED_PRICES[coin_id][3],
            )
            for coin_id in coin_ids
            if coin_id in self.FIXED_PRICES
        }

    def get_markets(self, coin_ids: list[str]) -> list[CoinPrice]:
        self._record("markets", tuple(coin_ids))
        return [self._coin(c) for c in coin_ids if c in self.FIXED_PRICES]

    def get_top_coins(self, limit: int) -> list[CoinPrice]:
        self._record("top_coins", limit)
        return [self._coin(c) for c in list(self.FIXED_PRICES)[:limit]]

    def get_coin_detail(self, coin_id: str) -> CoinDetail:
        self._record("coin_detail", coin_id)
        if coin_id not in self.FIXED_PRICES:
            raise UpstreamProviderError(self.name, "coin_detail", detail="HTTP 404")
        return CoinDetail(**vars(self._coin(coin_id)), description="Test coin")

    def search(self, query: str) -> list[SearchResult]:
        self._record("search", query)
        return [
            SearchResult(coin_id=c, name=v[1], symbol=v[0])
            for c, v in self.FIXED_PRICES.items()
            if query.lower() in c
        ]

    def get_trending(self) -> list[TrendingCoin]:
        self._record("trending")
        return [TrendingCoin(coin_id="solana", name="Solana", symbol="SOL", price_btc=Decimal("0.0022"))]

    def get_market_chart(self, coin_id: str, days: int) -> list[PricePoint]:
        self._record("market_chart", coin_id, days)
        price = self.FIXED_PRICES[coin_id][2]
        return [
            PricePoint(timestamp=utc_datetime(2024, 6, day), price=price)
            for day in range(1, days + 1)
        ]

    def _coin(self, coin_id: str) -> CoinPrice:
        symbol, name, price, change = self.FIXED_PRICES[coin_id]
        return CoinPrice(
            coin_id=coin_id,
            symbol=symbol,
            name=name,
            current_price=price,
            price_change_percentage_24h=change,
        )


class FailingMarketProvider:
    """Market provider whose every call fails upstream."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    def _fail(self, operation: str):
        self.calls += 1
        raise UpstreamProviderError(self.name, operation, cause=ConnectionError("Network unavailable"))

    def get_simple_prices(self, coin_ids):
        self._fail("simple_price")

    def get_markets(self, coin_ids):
        self._fail("markets")

    def get_top_coins(self, limit):
        self._fail("top_coins")

    def get_coin_detail(self, coin_id):
        self._fail("coin_detail")

    def search(self, query):
        self._fail("search")

    def get_trending(self):
        self._fail("trending")

    def get_market_chart(self, coin_id, days):
        self._fail("market_chart")


@pytest.fixture
def deterministic_provider() -> DeterministicMarketProvider:
    return DeterministicMarketProvider()


@pytest.fixture
def failing_provider() -> FailingMarketProvider:
    return FailingMarketProvider()


@pytest.fixture
def quote_cache(fake_clock) -> QuoteCache:
    return QuoteCache(ttl_seconds=60, clock=fake_clock)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def locks() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def reconciler(position_repo, locks) -> LedgerReconciler:
    return LedgerReconciler(position_repo, locks=locks)


@pytest.fixture
def ledger_service(
    portfolio_repo,
    transaction_repo,
    position_repo,
    reconciler,
    instrument_repo,
) -> LedgerService:
    return LedgerService(
        portfolio_repo=portfolio_repo,
        transaction_repo=transaction_repo,
        position_repo=position_repo,
        reconciler=reconciler,
        instrument_repo=instrument_repo,
    )


@pytest.fixture
def strict_ledger_service(
    portfolio_repo,
    transaction_repo,
    position_repo,
    reconciler,
) -> LedgerService:
    return LedgerService(
        portfolio_repo=portfolio_repo,
        transaction_repo=transaction_repo,
        position_repo=position_repo,
        reconciler=reconciler,
        strict_sells=True,
    )


@pytest.fixture
def market_data_service(
    deterministic_provider,
    quote_cache,
    price_repo,
    instrument_repo,
) -> MarketDataService:
    return MarketDataService(
        provider=deterministic_provider,
        cache=quote_cache,
        price_repo=price_repo,
        instrument_repo=instrument_repo,
        price_max_age_seconds=120,
    )


@pytest.fixture
def analysis_service(position_repo, transaction_repo, market_data_service) -> AnalysisService:
    return AnalysisService(
        position_repo=position_repo,
        transaction_repo=transaction_repo,
        market_data_service=market_data_service,
    )


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def portfolio_factory(ledger_service) -> Callable[..., Portfolio]:
    """Factory for creating test portfolios."""
    counter = {"n": 0}

    def _create_portfolio(owner_id: str = "user-1", name: Optional[str] = None) -> Portfolio:
        counter["n"] += 1
        return ledger_service.create_portfolio(owner_id, name or f"Portfolio {counter['n']}")

    return _create_portfolio


@pytest.fixture
def sample_portfolio(portfolio_factory) -> Portfolio:
    return portfolio_factory(name="Main")


@pytest.fixture
def trade_factory(ledger_service) -> Callable[..., TradeResult]:
    """Factory for submitting trades through the ledger service."""

    def _trade(
        portfolio_id: str,
        txn_type: TransactionType,
        symbol: str,
        quantity: str,
        price: str,
        fee: str = "0",
        timestamp: Optional[datetime] = None,
    ) -> TradeResult:
        return ledger_service.record_trade(
            TradeRequest(
                portfolio_id=portfolio_id,
                txn_type=txn_type,
                symbol=symbol,
                quantity=Decimal(quantity),
                price=Decimal(price),
                fee=Decimal(fee),
                timestamp=timestamp,
            )
        )

    return _trade


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def api_provider() -> DeterministicMarketProvider:
    return DeterministicMarketProvider()


@pytest.fixture
def app_context(session_factory, api_provider) -> AppContext:
    """Process-wide context bound to the test database."""
    settings = Settings(
        database_url="sqlite://",
        market_data_provider="stub",
        price_sync_enabled=False,
    )
    context = AppContext(
        session_factory=session_factory,
        settings=settings,
        provider=api_provider,
    )
    context.seed_instruments()
    return context


@pytest.fixture
def client(session_factory, app_context) -> TestClient:
    """Provide FastAPI test client with test database."""
    set_settings(app_context.settings)
    reset_database()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_context] = lambda: app_context
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_database()
    reset_settings()


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(Decimal(actual) - Decimal(expected))
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"
