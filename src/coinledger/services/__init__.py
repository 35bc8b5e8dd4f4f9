"""Business logic services."""

from coinledger.services.reconciler import LedgerReconciler
from coinledger.services.ledger_service import LedgerService, TradeRequest, TradeResult
from coinledger.services.quote_cache import QuoteCache
from coinledger.services.market_data_service import MarketDataService
from coinledger.services.price_sync_service import PriceSyncService, SyncResult, SyncStatus
from coinledger.services.analysis_service import AnalysisService

__all__ = [
    "LedgerReconciler",
    "LedgerService",
    "TradeRequest",
    "TradeResult",
    "QuoteCache",
    "MarketDataService",
    "PriceSyncService",
    "SyncResult",
    "SyncStatus",
    "AnalysisService",
]
