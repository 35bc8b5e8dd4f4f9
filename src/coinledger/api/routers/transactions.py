"""Transaction (ledger) endpoints."""

from fastapi import APIRouter, Depends, Query

from coinledger.api.deps import get_ledger_service
from coinledger.api.schemas import (
    TradeCreateRequest,
    TradeResponse,
    TransactionResponse,
    TransactionListResponse,
    TransactionDeleteResponse,
    PositionResponse,
)
from coinledger.services import LedgerService, TradeRequest

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _transactions(transactions) -> TransactionListResponse:
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions),
    )


@router.post("", response_model=TradeResponse, status_code=201)
def submit_trade(
    data: TradeCreateRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Record a BUY or SELL and reconcile the position."""
    result = ledger.record_trade(
        TradeRequest(
            portfolio_id=data.portfolio_id,
            txn_type=data.txn_type,
            symbol=data.symbol,
            quantity=data.quantity,
            price=data.price,
            fee=data.fee,
            timestamp=data.timestamp,
            note=data.note,
            name=data.name,
        )
    )
    return TradeResponse.model_validate(result)


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    portfolio_id: str = Query(...),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """A portfolio's transactions, newest first."""
    return _transactions(ledger.list_transactions(portfolio_id))


@router.get("/history", response_model=TransactionListResponse)
def transaction_history(
    owner_id: str = Query(...),
    limit: int = Query(default=100, ge=1, le=1000),
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Newest transactions across all of an owner's portfolios."""
    return _transactions(ledger.transaction_history(owner_id, limit=limit))


@router.get("/{txn_id}", response_model=TransactionResponse)
def get_transaction(
    txn_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
):
    return TransactionResponse.model_validate(ledger.get_transaction(txn_id))


@router.delete("/{txn_id}", response_model=TransactionDeleteResponse)
def delete_transaction(
    txn_id: str,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Remove a ledger entry and rebuild its position."""
    position = ledger.delete_transaction(txn_id)
    return TransactionDeleteResponse(
        txn_id=txn_id,
        position=PositionResponse.model_validate(position) if position else None,
    )
