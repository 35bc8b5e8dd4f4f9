"""Ledger service: portfolios, trade submission and position replay."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from coinledger.core.exceptions import (
    ValidationError,
    NotFoundError,
    InsufficientHoldingsError,
)
from coinledger.core.timezone import now_utc, to_utc
from coinledger.domain.models import (
    Portfolio,
    Position,
    PositionRemoved,
    Transaction,
    TransactionType,
)
from coinledger.providers.symbols import normalize_symbol
from coinledger.repositories.protocols import (
    PortfolioRepository,
    TransactionRepository,
    PositionRepository,
    InstrumentRepository,
)
from coinledger.services.reconciler import LedgerReconciler

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO_NAME = "Main"
DEFAULT_HISTORY_LIMIT = 100

# Ledger amounts are stored as Numeric(28, 10)
LEDGER_QUANTUM = Decimal("1E-10")


@dataclass
class TradeRequest:
    """Input data for submitting a trade."""

    portfolio_id: str
    txn_type: Union[TransactionType, str]
    symbol: str
    quantity: Any
    price: Any
    fee: Any = Decimal("0")
    timestamp: Optional[datetime] = None
    note: Optional[str] = None
    name: Optional[str] = None


@dataclass
class TradeResult:
    """Outcome of a trade submission."""

    transaction: Transaction
    position: Optional[Position] = None
    removed: Optional[PositionRemoved] = None
    replayed: bool = False


def _decimal(value: Any, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} is not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite")
    try:
        return result.quantize(LEDGER_QUANTUM)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is out of range: {value!r}") from exc


class LedgerService:
    """
    Service for managing portfolios and the transaction ledger.

    The ledger is append-only and is the source of truth; positions are kept
    in step with it by the reconciler and can always be rebuilt by replay.
    """

    def __init__(
        self,
        portfolio_repo: PortfolioRepository,
        transaction_repo: TransactionRepository,
        position_repo: PositionRepository,
        reconciler: LedgerReconciler,
        instrument_repo: Optional[InstrumentRepository] = None,
        strict_sells: bool = False,
    ):
        self._portfolio_repo = portfolio_repo
        self._transaction_repo = transaction_repo
        self._position_repo = position_repo
        self._reconciler = reconciler
        self._instrument_repo = instrument_repo
        self._strict_sells = strict_sells

    # Portfolios

    def create_portfolio(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
    ) -> Portfolio:
        """
        Create a new portfolio for an owner.

        Args:
            owner_id: Opaque owner reference
            name: Portfolio name, unique per owner
            description: Optional free text

        Returns:
            Created Portfolio instance
        """
        owner_id = (owner_id or "").strip()
        name = (name or "").strip()
        if not owner_id:
            raise ValidationError("owner_id is required")
        if not name:
            raise ValidationError("Portfolio name is required")
        if self._portfolio_repo.get_by_owner_and_name(owner_id, name):
            raise ValidationError(f"Portfolio with name '{name}' already exists")

        portfolio = Portfolio(
            portfolio_id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name,
            description=description,
            created_at=now_utc(),
        )
        return self._portfolio_repo.create(portfolio)

    def get_portfolio(self, portfolio_id: str) -> Portfolio:
        """Get portfolio by ID."""
        portfolio = self._portfolio_repo.get_by_id(portfolio_id)
        if not portfolio:
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    def list_portfolios(self, owner_id: Optional[str] = None) -> list[Portfolio]:
        """List portfolios, optionally for one owner."""
        return self._portfolio_repo.list_all(owner_id)

    def get_or_create_default_portfolio(self, owner_id: str) -> Portfolio:
        """Return the owner's first portfolio, creating "Main" if none exists."""
        existing = self._portfolio_repo.list_all(owner_id)
        if existing:
            return existing[0]
        logger.info("Creating default portfolio for owner %s", owner_id)
        return self.create_portfolio(owner_id, DEFAULT_PORTFOLIO_NAME)

    def update_portfolio(
        self,
        portfolio_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Portfolio:
        """
        Rename a portfolio and/or change its description.

        Fields left as None are unchanged. The new name must still be unique
        for the owner.
        """
        portfolio = self.get_portfolio(portfolio_id)

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Portfolio name is required")
            if name != portfolio.name:
                clash = self._portfolio_repo.get_by_owner_and_name(portfolio.owner_id, name)
                if clash and clash.portfolio_id != portfolio_id:
                    raise ValidationError(f"Portfolio with name '{name}' already exists")
                portfolio.name = name
        if description is not None:
            portfolio.description = description

        updated = self._portfolio_repo.update(portfolio)
        logger.info("Updated portfolio %s", portfolio_id)
        return updated

    def delete_portfolio(self, portfolio_id: str) -> None:
        """Delete a portfolio with its transactions and positions."""
        if not self._portfolio_repo.delete(portfolio_id):
            raise NotFoundError("Portfolio", portfolio_id)
        logger.info("Deleted portfolio %s", portfolio_id)

    # Trades

    def record_trade(self, request: TradeRequest) -> TradeResult:
        """
        Append a trade to the ledger and reconcile its position.

        All validation happens before anything is written. A back-dated trade
        (earlier than the pair's latest transaction) triggers a replay of the
        pair so the position matches the timestamp-ordered log.
        """
        portfolio = self.get_portfolio(request.portfolio_id)
        transaction = self._build_transaction(portfolio.portfolio_id, request)
        self._reconciler.validate(transaction)
        symbol = transaction.symbol
        name = request.name or self._instrument_name(symbol)

        key = self._reconciler.lock_key(portfolio.portfolio_id, symbol)
        with self._reconciler.locks.hold(key):
            if self._strict_sells and transaction.txn_type == TransactionType.SELL:
                self._check_holdings(portfolio.portfolio_id, symbol, transaction.quantity)

            latest = self._transaction_repo.latest_timestamp(portfolio.portfolio_id, symbol)
            backdated = latest is not None and transaction.timestamp < latest

            created = self._transaction_repo.create(transaction)
            try:
                if backdated:
                    position = self._reconciler.rebuild(
                        portfolio.portfolio_id,
                        symbol,
                        self._transaction_repo.list_by_pair(portfolio.portfolio_id, symbol),
                        name=name,
                    )
                    result = TradeResult(transaction=created, position=position, replayed=True)
                else:
                    outcome = self._reconciler.apply(created, name=name)
                    if isinstance(outcome, PositionRemoved):
                        result = TradeResult(transaction=created, removed=outcome)
                    else:
                        result = TradeResult(transaction=created, position=outcome)
            except Exception:
                # Keep the log and positions in step
                logger.warning(
                    "Reconciliation of %s failed; removing it from the ledger",
                    created.txn_id,
                )
                self._transaction_repo.delete(created.txn_id)
                raise

        logger.info(
            "Recorded %s %s %s @ %s in portfolio %s%s",
            created.txn_type.value,
            created.quantity,
            created.symbol,
            created.price,
            created.portfolio_id,
            " (replayed)" if result.replayed else "",
        )
        return result

    def get_transaction(self, txn_id: str) -> Transaction:
        """Get transaction by ID."""
        txn = self._transaction_repo.get_by_id(txn_id)
        if not txn:
            raise NotFoundError("Transaction", txn_id)
        return txn

    def list_transactions(self, portfolio_id: str) -> list[Transaction]:
        """List a portfolio's transactions, newest first."""
        self.get_portfolio(portfolio_id)
        return list(reversed(self._transaction_repo.list_by_portfolio(portfolio_id)))

    def transaction_history(
        self,
        owner_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[Transaction]:
        """Newest-first transactions across all of an owner's portfolios."""
        if limit <= 0:
            raise ValidationError("limit must be positive")
        portfolio_ids = [p.portfolio_id for p in self._portfolio_repo.list_all(owner_id)]
        return self._transaction_repo.list_recent(portfolio_ids, limit)

    def delete_transaction(self, txn_id: str) -> Optional[Position]:
        """
        Remove a ledger entry and rebuild its pair by replay.

        Returns the rebuilt position, or None if nothing is held afterwards.
        """
        txn = self.get_transaction(txn_id)
        key = self._reconciler.lock_key(txn.portfolio_id, txn.symbol)
        with self._reconciler.locks.hold(key):
            self._transaction_repo.delete(txn_id)
            position = self._reconciler.rebuild(
                txn.portfolio_id,
                txn.symbol,
                self._transaction_repo.list_by_pair(txn.portfolio_id, txn.symbol),
                name=self._instrument_name(txn.symbol),
            )
        logger.info("Deleted transaction %s", txn_id)
        return position

    # Positions

    def get_positions(self, portfolio_id: str) -> list[Position]:
        """Current positions of a portfolio."""
        self.get_portfolio(portfolio_id)
        return self._position_repo.list_by_portfolios([portfolio_id])

    def get_position(self, portfolio_id: str, symbol: str) -> Position:
        """Current position for one symbol."""
        self.get_portfolio(portfolio_id)
        position = self._position_repo.get(portfolio_id, normalize_symbol(symbol))
        if not position:
            raise NotFoundError("Position", f"{portfolio_id}/{normalize_symbol(symbol)}")
        return position

    def rebuild_positions(self, portfolio_id: str) -> list[Position]:
        """Replay the full log of a portfolio for every symbol it touches."""
        self.get_portfolio(portfolio_id)
        transactions = self._transaction_repo.list_by_portfolio(portfolio_id)
        symbols = {t.symbol for t in transactions}
        symbols.update(p.symbol for p in self._position_repo.list_by_portfolios([portfolio_id]))

        rebuilt = []
        for symbol in sorted(symbols):
            position = self._reconciler.rebuild(
                portfolio_id,
                symbol,
                [t for t in transactions if t.symbol == symbol],
                name=self._instrument_name(symbol),
            )
            if position is not None:
                rebuilt.append(position)
        logger.info("Rebuilt %d positions for portfolio %s", len(rebuilt), portfolio_id)
        return rebuilt

    def _build_transaction(self, portfolio_id: str, request: TradeRequest) -> Transaction:
        try:
            txn_type = TransactionType(
                request.txn_type.upper() if isinstance(request.txn_type, str) else request.txn_type
            )
        except ValueError as exc:
            raise ValidationError(f"Unknown transaction type: {request.txn_type}") from exc

        symbol = normalize_symbol(request.symbol)
        if not symbol:
            raise ValidationError("Symbol is required")

        now = now_utc()
        return Transaction(
            txn_id=str(uuid.uuid4()),
            portfolio_id=portfolio_id,
            txn_type=txn_type,
            symbol=symbol,
            quantity=_decimal(request.quantity, "quantity"),
            price=_decimal(request.price, "price"),
            timestamp=to_utc(request.timestamp) if request.timestamp else now,
            fee=_decimal(request.fee if request.fee is not None else Decimal("0"), "fee"),
            note=request.note,
            created_at=now,
        )

    def _check_holdings(self, portfolio_id: str, symbol: str, quantity: Decimal) -> None:
        position = self._position_repo.get(portfolio_id, symbol)
        available = position.quantity if position else Decimal("0")
        if quantity > available:
            raise InsufficientHoldingsError(symbol, str(quantity), str(available))

    def _instrument_name(self, symbol: str) -> Optional[str]:
        if self._instrument_repo is None:
            return None
        instrument = self._instrument_repo.get_by_symbol(symbol)
        return instrument.name if instrument else None
