"""Ledger reconciliation: trade events to weighted-average positions."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Union

from coinledger.core.exceptions import ValidationError, ReconciliationConflict
from coinledger.core.locking import KeyedLock
from coinledger.core.timezone import now_utc
from coinledger.domain.models import (
    Position,
    PositionRemoved,
    Transaction,
    TransactionType,
)
from coinledger.providers.symbols import normalize_symbol
from coinledger.repositories.protocols import PositionRepository

logger = logging.getLogger(__name__)

ApplyResult = Union[Position, PositionRemoved, None]

DEFAULT_MAX_RETRIES = 3


def advance(
    current: Optional[Position],
    txn: Transaction,
    now: Optional[datetime] = None,
    name: Optional[str] = None,
) -> Optional[Position]:
    """
    Apply one transaction to a position without touching storage.

    Returns the next position state, or None when nothing is held afterwards.
    The returned position keeps the version of ``current`` so that a
    conditional write can detect concurrent changes.
    """
    now = now or now_utc()
    symbol = normalize_symbol(txn.symbol)

    if txn.txn_type == TransactionType.BUY:
        if current is None:
            return Position(
                portfolio_id=txn.portfolio_id,
                symbol=symbol,
                quantity=txn.quantity,
                average_cost=txn.price,
                name=name,
                first_txn_id=txn.txn_id,
                last_txn_id=txn.txn_id,
                opened_at=txn.timestamp,
                updated_at=now,
            )
        new_quantity = current.quantity + txn.quantity
        new_average = (
            current.quantity * current.average_cost + txn.quantity * txn.price
        ) / new_quantity
        return replace(
            current,
            quantity=new_quantity,
            average_cost=new_average,
            name=current.name or name,
            last_txn_id=txn.txn_id,
            updated_at=now,
        )

    # SELL
    if current is None:
        return None
    new_quantity = current.quantity - txn.quantity
    if new_quantity <= 0:
        return None
    return replace(
        current,
        quantity=new_quantity,
        last_txn_id=txn.txn_id,
        updated_at=now,
    )


class LedgerReconciler:
    """
    Maintains derived positions from the transaction log.

    Every read-modify-write for a (portfolio, symbol) pair runs under the
    pair's lock. Position writes are version-checked by the repository; a
    conflict is retried from a fresh read up to ``max_retries`` times.
    """

    def __init__(
        self,
        position_repo: PositionRepository,
        locks: Optional[KeyedLock] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self._positions = position_repo
        self._locks = locks or KeyedLock()
        self._max_retries = max_retries

    @property
    def locks(self) -> KeyedLock:
        return self._locks

    @staticmethod
    def lock_key(portfolio_id: str, symbol: str) -> tuple[str, str]:
        return (portfolio_id, normalize_symbol(symbol))

    @staticmethod
    def validate(txn: Transaction) -> None:
        """Pre-checks that must pass before any state is touched."""
        if not txn.portfolio_id:
            raise ValidationError("Transaction requires a portfolio_id")
        if not isinstance(txn.txn_type, TransactionType):
            raise ValidationError(f"Unknown transaction type: {txn.txn_type}")
        if not normalize_symbol(txn.symbol):
            raise ValidationError("Transaction requires a symbol")
        if txn.quantity is None or txn.quantity <= 0:
            raise ValidationError("Quantity must be positive")
        if txn.price is None or txn.price < 0:
            raise ValidationError("Price must be non-negative")
        if txn.fee is not None and txn.fee < 0:
            raise ValidationError("Fee must be non-negative")

    def apply(self, txn: Transaction, name: Optional[str] = None) -> ApplyResult:
        """
        Reconcile one new transaction into its position.

        Returns:
            The created or updated Position, PositionRemoved when a SELL
            closed the position, or None for a SELL with nothing held.

        Raises:
            ValidationError: If the transaction fails pre-checks.
            ReconciliationConflict: If retries are exhausted.
        """
        self.validate(txn)
        symbol = normalize_symbol(txn.symbol)

        with self._locks.hold(self.lock_key(txn.portfolio_id, symbol)):
            return self._with_retries(
                txn.portfolio_id,
                symbol,
                lambda current: self._apply_to(current, txn, name),
            )

    def replay(
        self,
        portfolio_id: str,
        symbol: str,
        transactions: Iterable[Transaction],
    ) -> Optional[Position]:
        """Fold a pair's transactions in timestamp order into a position."""
        symbol = normalize_symbol(symbol)
        ordered = sorted(
            (
                t
                for t in transactions
                if t.portfolio_id == portfolio_id and normalize_symbol(t.symbol) == symbol
            ),
            key=lambda t: (t.timestamp, t.created_at or t.timestamp),
        )
        position: Optional[Position] = None
        for txn in ordered:
            position = advance(position, txn, now=txn.timestamp)
        return position

    def rebuild(
        self,
        portfolio_id: str,
        symbol: str,
        transactions: Iterable[Transaction],
        name: Optional[str] = None,
    ) -> Optional[Position]:
        """Overwrite a pair's stored position with its replayed state."""
        symbol = normalize_symbol(symbol)
        target = self.replay(portfolio_id, symbol, list(transactions))

        def write(current: Optional[Position]) -> Optional[Position]:
            if target is None:
                if current is not None:
                    self._positions.delete(current)
                return None
            version = current.version if current else 0
            current_name = current.name if current else None
            return self._positions.save(
                replace(
                    target,
                    name=current_name or name,
                    version=version,
                    updated_at=now_utc(),
                )
            )

        with self._locks.hold(self.lock_key(portfolio_id, symbol)):
            result = self._with_retries(portfolio_id, symbol, write)
        logger.info("Rebuilt position %s/%s: %s", portfolio_id, symbol, result)
        return result

    def _apply_to(
        self,
        current: Optional[Position],
        txn: Transaction,
        name: Optional[str],
    ) -> ApplyResult:
        nxt = advance(current, txn, name=name)

        if txn.txn_type == TransactionType.BUY:
            return self._positions.save(nxt)

        if current is None:
            logger.info(
                "SELL %s %s with no position in portfolio %s; nothing to reconcile",
                txn.quantity,
                txn.symbol,
                txn.portfolio_id,
            )
            return None

        if nxt is None:
            self._positions.delete(current)
            removed = PositionRemoved(
                portfolio_id=current.portfolio_id,
                symbol=current.symbol,
                sold_quantity=txn.quantity,
                average_cost=current.average_cost,
                discarded_cost_basis=current.cost_basis,
            )
            logger.info(
                "Position %s/%s closed (sold %s, held %s at avg %s)",
                current.portfolio_id,
                current.symbol,
                txn.quantity,
                current.quantity,
                current.average_cost,
            )
            return removed

        return self._positions.save(nxt)

    def _with_retries(self, portfolio_id: str, symbol: str, operation):
        attempt = 0
        while True:
            current = self._positions.get(portfolio_id, symbol)
            try:
                return operation(current)
            except ReconciliationConflict:
                attempt += 1
                if attempt > self._max_retries:
                    logger.error(
                        "Giving up on %s/%s after %d conflicts",
                        portfolio_id,
                        symbol,
                        attempt,
                    )
                    raise
                logger.warning(
                    "Reconciliation conflict on %s/%s, retrying (%d/%d)",
                    portfolio_id,
                    symbol,
                    attempt,
                    self._max_retries,
                )
