"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class InsufficientHoldingsError(AppError):
    """Raised when a SELL exceeds the held quantity and strict sells are enforced."""

    def __init__(self, symbol: str, requested: str, available: str):
        super().__init__(
            f"Insufficient holdings of {symbol}: requested {requested}, available {available}",
            code="INSUFFICIENT_HOLDINGS",
        )


class UpstreamProviderError(AppError):
    """
    Raised when the market data provider cannot serve a request.

    Every transport error, timeout, non-2xx status and malformed payload is
    normalized into this one error; the original exception is kept as ``cause``.
    """

    def __init__(
        self,
        provider: str,
        operation: str,
        cause: Optional[BaseException] = None,
        detail: Optional[str] = None,
    ):
        self.provider = provider
        self.operation = operation
        self.cause = cause
        reason = detail or (str(cause) if cause else "unknown error")
        super().__init__(
            f"{provider} {operation} failed: {reason}",
            code="UPSTREAM_ERROR",
        )


class ReconciliationConflict(AppError):
    """Raised when a position changed underneath a read-modify-write."""

    def __init__(self, portfolio_id: str, symbol: str):
        self.portfolio_id = portfolio_id
        self.symbol = symbol
        super().__init__(
            f"Concurrent update on position {symbol} in portfolio {portfolio_id}",
            code="RECONCILIATION_CONFLICT",
        )
