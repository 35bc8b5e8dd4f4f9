"""API routers package."""

from coinledger.api.routers.portfolios import router as portfolios_router
from coinledger.api.routers.transactions import router as transactions_router
from coinledger.api.routers.analytics import router as analytics_router
from coinledger.api.routers.market import router as market_router

__all__ = [
    "portfolios_router",
    "transactions_router",
    "analytics_router",
    "market_router",
]
