"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coinledger import __version__
from coinledger.app_context import AppContext
from coinledger.config.settings import get_settings
from coinledger.config.logging_config import setup_logging
from coinledger.repositories.sqlalchemy.database import init_db, get_session_factory
from coinledger.api.routers import (
    portfolios_router,
    transactions_router,
    analytics_router,
    market_router,
)
from coinledger.core.exceptions import AppError

ERROR_STATUS = {
    "VALIDATION_ERROR": 400,
    "INSUFFICIENT_HOLDINGS": 400,
    "NOT_FOUND": 404,
    "RECONCILIATION_CONFLICT": 409,
    "UPSTREAM_ERROR": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    context = AppContext(session_factory=get_session_factory())
    context.start()
    app.state.context = context
    yield
    # Shutdown
    context.shutdown()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Crypto portfolio ledger with weighted-average cost basis and live prices",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(portfolios_router)
app.include_router(transactions_router)
app.include_router(analytics_router)
app.include_router(market_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, 400),
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests in the same shape as application errors."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": "VALIDATION_ERROR", "message": message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
