"""Background synchronization of the persisted price store."""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session, sessionmaker

from coinledger.core.exceptions import UpstreamProviderError
from coinledger.core.timezone import UTC, now_utc
from coinledger.domain.models import PriceQuote
from coinledger.providers.market_data_provider import MarketDataProvider
from coinledger.repositories.sqlalchemy import (
    SqlAlchemyInstrumentRepository,
    SqlAlchemyPriceRepository,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0
JOB_ID = "price_sync"


@dataclass
class SyncResult:
    """Outcome of one sync pass."""

    requested: int
    updated: int
    skipped: int
    duration_ms: int


@dataclass
class SyncStatus:
    """Observable state of the sync service."""

    running: bool
    interval_ms: int
    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    passes: int = 0
    failures: int = 0


class PriceSyncService:
    """
    Keeps the persisted price store fresh on a fixed interval.

    One pass reads the active instrument universe, makes a single batch
    upstream call and upserts every returned price. A failed pass is logged
    and counted; the schedule keeps running. Passes never overlap.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        session_factory: sessionmaker,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self._provider = provider
        self._session_factory = session_factory
        self._interval = interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None
        self._pass_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._last_run_at: Optional[datetime] = None
        self._last_success_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._passes = 0
        self._failures = 0

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Run a pass immediately, then every interval. No-op if running."""
        with self._state_lock:
            if self._scheduler is not None:
                logger.debug("Price sync already running")
                return

            scheduler = BackgroundScheduler(timezone=UTC)
            scheduler.add_job(
                self._tick,
                trigger=IntervalTrigger(seconds=self._interval),
                id=JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                next_run_time=datetime.now(UTC),
            )
            scheduler.start()
            self._scheduler = scheduler

        logger.info("Price sync started (every %ss)", self._interval)

    def stop(self) -> None:
        """Cancel the schedule. An in-flight pass is allowed to finish."""
        with self._state_lock:
            scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return
        scheduler.shutdown(wait=False)
        logger.info("Price sync stopped")

    def status(self) -> SyncStatus:
        with self._state_lock:
            return SyncStatus(
                running=self._scheduler is not None,
                interval_ms=int(self._interval * 1000),
                last_run_at=self._last_run_at,
                last_success_at=self._last_success_at,
                last_error=self._last_error,
                passes=self._passes,
                failures=self._failures,
            )

    def _tick(self) -> None:
        """Scheduled entry point; never raises."""
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("Previous price sync pass still running; skipping tick")
            return
        try:
            self._run_pass()
        except Exception:
            # Recorded in status by _run_pass
            logger.debug("Price sync pass failed", exc_info=True)
        finally:
            self._pass_lock.release()

    def sync_once(self) -> SyncResult:
        """
        Run one pass now.

        Raises:
            UpstreamProviderError: If the batch price call fails.
        """
        with self._pass_lock:
            return self._run_pass()

    def _run_pass(self) -> SyncResult:
        started = time.monotonic()
        with self._state_lock:
            self._last_run_at = now_utc()

        try:
            result = self._sync(started)
        except Exception as exc:
            with self._state_lock:
                self._passes += 1
                self._failures += 1
                self._last_error = str(exc)
            if isinstance(exc, UpstreamProviderError):
                logger.error("Price sync pass failed: %s", exc)
            else:
                logger.exception("Price sync pass failed")
            raise

        with self._state_lock:
            self._passes += 1
            self._last_success_at = now_utc()
            self._last_error = None
        return result

    def _sync(self, started: float) -> SyncResult:
        session: Session = self._session_factory()
        try:
            instruments = SqlAlchemyInstrumentRepository(session).list_active()
            if not instruments:
                logger.warning("No active instruments to sync")
                return SyncResult(requested=0, updated=0, skipped=0, duration_ms=0)

            by_id = {i.coin_id: i for i in instruments}
            prices = self._provider.get_simple_prices(list(by_id))

            price_repo = SqlAlchemyPriceRepository(session)
            updated = 0
            for coin_id, instrument in by_id.items():
                price = prices.get(coin_id)
                if price is None:
                    continue
                change_24h = price.change_24h
                price_repo.upsert(
                    PriceQuote(
                        coin_id=coin_id,
                        symbol=instrument.symbol,
                        name=instrument.name,
                        current_price=price.price,
                        last_updated=now_utc(),
                        market_cap=price.market_cap,
                        volume_24h=price.volume_24h,
                        price_change_24h=(
                            change_24h.quantize(Decimal("0.0000000001"))
                            if change_24h is not None
                            else None
                        ),
                        price_change_percentage_24h=price.change_percentage_24h,
                    )
                )
                updated += 1
        finally:
            session.close()

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Price sync updated %d/%d instruments in %dms",
            updated,
            len(instruments),
            duration_ms,
        )
        return SyncResult(
            requested=len(instruments),
            updated=updated,
            skipped=len(instruments) - updated,
            duration_ms=duration_ms,
        )
