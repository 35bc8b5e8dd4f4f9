"""
Unit tests for LedgerService.

Tests cover:
- Portfolio creation, lookup, default portfolio and cascade delete
- Trade submission with reconciliation
- Strict vs permissive sells
- Back-dated trades replay the pair
- Transaction listing, history and deletion with replay
- Full position rebuild
"""

import pytest
from decimal import Decimal

from coinledger.core.exceptions import (
    ValidationError,
    NotFoundError,
    InsufficientHoldingsError,
)
from coinledger.domain.models import Portfolio, TransactionType
from coinledger.services import LedgerService, TradeRequest

from tests.conftest import utc_datetime


# =============================================================================
# PORTFOLIO TESTS
# =============================================================================


class TestPortfolios:
    """Tests for portfolio management."""

    def test_create_portfolio(self, ledger_service: LedgerService):
        """
        GIVEN no portfolios exist
        WHEN I create a portfolio "Long Term" for user-1
        THEN it is persisted with an id and creation time
        """
        portfolio = ledger_service.create_portfolio("user-1", "Long Term", "HODL")

        assert portfolio.portfolio_id
        assert portfolio.owner_id == "user-1"
        assert portfolio.name == "Long Term"
        assert portfolio.description == "HODL"
        assert portfolio.created_at is not None

    def test_create_portfolio_requires_name(self, ledger_service: LedgerService):
        with pytest.raises(ValidationError):
            ledger_service.create_portfolio("user-1", "   ")

    def test_duplicate_name_for_same_owner_fails(self, ledger_service: LedgerService):
        """
        GIVEN user-1 owns a portfolio "Main"
        WHEN user-1 creates another "Main"
        THEN ValidationError is raised, while user-2 may use the name
        """
        ledger_service.create_portfolio("user-1", "Main")

        with pytest.raises(ValidationError) as exc_info:
            ledger_service.create_portfolio("user-1", "Main")
        assert "already exists" in exc_info.value.message

        assert ledger_service.create_portfolio("user-2", "Main").owner_id == "user-2"

    def test_get_unknown_portfolio_raises(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.get_portfolio("missing")

    def test_list_portfolios_by_owner(self, ledger_service: LedgerService):
        ledger_service.create_portfolio("user-1", "A")
        ledger_service.create_portfolio("user-1", "B")
        ledger_service.create_portfolio("user-2", "C")

        assert {p.name for p in ledger_service.list_portfolios("user-1")} == {"A", "B"}
        assert len(ledger_service.list_portfolios()) == 3

    def test_default_portfolio_created_once(self, ledger_service: LedgerService):
        """
        GIVEN an owner with no portfolios
        WHEN the default portfolio is requested twice
        THEN "Main" is created once and returned both times
        """
        first = ledger_service.get_or_create_default_portfolio("new-user")
        second = ledger_service.get_or_create_default_portfolio("new-user")

        assert first.name == "Main"
        assert first.portfolio_id == second.portfolio_id
        assert len(ledger_service.list_portfolios("new-user")) == 1

    def test_update_portfolio_name_and_description(self, ledger_service: LedgerService):
        portfolio = ledger_service.create_portfolio("user-1", "Main", "old")

        updated = ledger_service.update_portfolio(
            portfolio.portfolio_id, name=" Trading ", description="new",
        )

        assert updated.name == "Trading"
        assert updated.description == "new"
        assert ledger_service.get_portfolio(portfolio.portfolio_id).name == "Trading"

    def test_update_keeps_omitted_fields(self, ledger_service: LedgerService):
        portfolio = ledger_service.create_portfolio("user-1", "Main", "keep me")

        updated = ledger_service.update_portfolio(portfolio.portfolio_id, name="Renamed")

        assert updated.description == "keep me"

    def test_update_to_taken_name_fails(self, ledger_service: LedgerService):
        """
        GIVEN user-1 owns "Main" and "Trading"
        WHEN "Trading" is renamed to "Main"
        THEN ValidationError is raised and the name is unchanged
        """
        ledger_service.create_portfolio("user-1", "Main")
        trading = ledger_service.create_portfolio("user-1", "Trading")

        with pytest.raises(ValidationError):
            ledger_service.update_portfolio(trading.portfolio_id, name="Main")

        assert ledger_service.get_portfolio(trading.portfolio_id).name == "Trading"

    def test_update_to_own_name_is_allowed(self, ledger_service: LedgerService):
        portfolio = ledger_service.create_portfolio("user-1", "Main")

        assert ledger_service.update_portfolio(portfolio.portfolio_id, name="Main").name == "Main"

    def test_update_rejects_blank_name(self, ledger_service: LedgerService):
        portfolio = ledger_service.create_portfolio("user-1", "Main")

        with pytest.raises(ValidationError):
            ledger_service.update_portfolio(portfolio.portfolio_id, name="  ")

    def test_update_unknown_portfolio_raises(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.update_portfolio("missing", name="X")

    def test_delete_portfolio_cascades(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        trade_factory,
        transaction_repo,
        position_repo,
    ):
        """
        GIVEN a portfolio with trades and a position
        WHEN it is deleted
        THEN its transactions and positions are gone too
        """
        pid = sample_portfolio.portfolio_id
        trade_factory(pid, TransactionType.BUY, "BTC", "1", "60000")

        ledger_service.delete_portfolio(pid)

        assert transaction_repo.list_by_portfolio(pid) == []
        assert position_repo.list_by_portfolios([pid]) == []
        with pytest.raises(NotFoundError):
            ledger_service.get_portfolio(pid)

    def test_delete_unknown_portfolio_raises(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.delete_portfolio("missing")


# =============================================================================
# TRADE SUBMISSION TESTS
# =============================================================================


class TestRecordTrade:
    """Tests for trade submission."""

    def test_buy_creates_transaction_and_position(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        seeded_instruments,
    ):
        """
        GIVEN an empty portfolio
        WHEN BUY 0.5 btc @ 65000 with fee 10 is recorded
        THEN the transaction is stored upper-cased and the position is created
        """
        result = ledger_service.record_trade(TradeRequest(
            portfolio_id=sample_portfolio.portfolio_id,
            txn_type="buy",
            symbol="btc",
            quantity="0.5",
            price="65000",
            fee="10",
            note="first",
        ))

        assert result.transaction.symbol == "BTC"
        assert result.transaction.txn_type == TransactionType.BUY
        assert result.transaction.fee == Decimal("10")
        assert result.position.quantity == Decimal("0.5")
        assert result.position.average_cost == Decimal("65000")
        assert result.position.name == "Bitcoin"
        assert result.replayed is False

    def test_buy_sell_sequence(
        self,
        sample_portfolio: Portfolio,
        trade_factory,
    ):
        """
        GIVEN an empty portfolio
        WHEN BUY 0.5@65000, BUY 0.3@68000, SELL 0.3, SELL 0.5 are recorded
        THEN the final SELL reports the removed position
        """
        pid = sample_portfolio.portfolio_id
        trade_factory(pid, TransactionType.BUY, "BTC", "0.5", "65000")
        second = trade_factory(pid, TransactionType.BUY, "BTC", "0.3", "68000")
        third = trade_factory(pid, TransactionType.SELL, "BTC", "0.3", "70000")
        last = trade_factory(pid, TransactionType.SELL, "BTC", "0.5", "71000")

        assert second.position.average_cost == Decimal("66125")
        assert third.position.quantity == Decimal("0.5")
        assert third.position.average_cost == Decimal("66125")
        assert last.position is None
        assert last.removed is not None
        assert last.removed.sold_quantity == Decimal("0.5")

    def test_unknown_portfolio_rejected(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.record_trade(TradeRequest(
                portfolio_id="missing", txn_type="BUY", symbol="BTC", quantity="1", price="1",
            ))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"txn_type": "HOLD"},
            {"symbol": "  "},
            {"quantity": "0"},
            {"quantity": "abc"},
            {"price": "-5"},
            {"fee": "-1"},
            {"quantity": "NaN"},
            {"quantity": "0.00000000001"},
            {"quantity": "1e30"},
        ],
    )
    def test_invalid_trade_writes_nothing(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        transaction_repo,
        overrides: dict,
    ):
        """
        GIVEN an invalid trade request
        WHEN it is recorded
        THEN ValidationError is raised and the ledger stays empty
        """
        fields = dict(
            portfolio_id=sample_portfolio.portfolio_id,
            txn_type="BUY",
            symbol="BTC",
            quantity="1",
            price="100",
            fee="0",
        )
        fields.update(overrides)

        with pytest.raises(ValidationError):
            ledger_service.record_trade(TradeRequest(**fields))

        assert transaction_repo.list_by_portfolio(sample_portfolio.portfolio_id) == []

    def test_amounts_rounded_to_ledger_scale(
        self,
        sample_portfolio: Portfolio,
        trade_factory,
    ):
        """
        GIVEN a quantity with more than ten decimal places
        WHEN it is recorded
        THEN the ledger and the position hold it rounded to ten places
        """
        result = trade_factory(
            sample_portfolio.portfolio_id, TransactionType.BUY, "BTC", "0.123456789012", "100",
        )

        assert result.transaction.quantity == Decimal("0.1234567890")
        assert result.position.quantity == Decimal("0.1234567890")

    def test_failed_position_write_removes_ledger_entry(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        transaction_repo,
        position_repo,
        monkeypatch,
    ):
        """
        GIVEN the position store fails on write
        WHEN a BUY is recorded
        THEN the error propagates and neither a transaction nor a position remains
        """
        def broken_save(position):
            raise RuntimeError("db down")

        monkeypatch.setattr(position_repo, "save", broken_save)
        pid = sample_portfolio.portfolio_id

        with pytest.raises(RuntimeError, match="db down"):
            ledger_service.record_trade(TradeRequest(
                portfolio_id=pid, txn_type="BUY", symbol="BTC", quantity="1", price="100",
            ))

        assert transaction_repo.list_by_portfolio(pid) == []
        assert position_repo.list_by_portfolios([pid]) == []

    def test_permissive_sell_without_position_is_recorded(
        self,
        sample_portfolio: Portfolio,
        trade_factory,
        transaction_repo,
    ):
        """
        GIVEN no ETH position and default settings
        WHEN SELL 1 ETH is recorded
        THEN the transaction is kept and no position exists
        """
        result = trade_factory(sample_portfolio.portfolio_id, TransactionType.SELL, "ETH", "1", "3000")

        assert result.position is None
        assert result.removed is None
        assert len(transaction_repo.list_by_portfolio(sample_portfolio.portfolio_id)) == 1

    def test_strict_sell_rejects_oversell(
        self,
        strict_ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        transaction_repo,
        position_repo,
    ):
        """
        GIVEN strict sells and a position of 1 ETH
        WHEN SELL 2 ETH is submitted
        THEN InsufficientHoldingsError is raised and nothing changes
        """
        pid = sample_portfolio.portfolio_id
        strict_ledger_service.record_trade(TradeRequest(
            portfolio_id=pid, txn_type="BUY", symbol="ETH", quantity="1", price="3000",
        ))

        with pytest.raises(InsufficientHoldingsError):
            strict_ledger_service.record_trade(TradeRequest(
                portfolio_id=pid, txn_type="SELL", symbol="ETH", quantity="2", price="3500",
            ))

        assert len(transaction_repo.list_by_portfolio(pid)) == 1
        assert position_repo.get(pid, "ETH").quantity == Decimal("1")

    def test_strict_sell_allows_exact_quantity(
        self,
        strict_ledger_service: LedgerService,
        sample_portfolio: Portfolio,
    ):
        pid = sample_portfolio.portfolio_id
        strict_ledger_service.record_trade(TradeRequest(
            portfolio_id=pid, txn_type="BUY", symbol="ETH", quantity="1", price="3000",
        ))

        result = strict_ledger_service.record_trade(TradeRequest(
            portfolio_id=pid, txn_type="SELL", symbol="ETH", quantity="1", price="3500",
        ))

        assert result.removed is not None

    def test_backdated_trade_replays_pair(
        self,
        sample_portfolio: Portfolio,
        trade_factory,
        position_repo,
    ):
        """
        GIVEN BUY 1 @ 100 on Jan 1 and SELL 1 on Jan 3
        WHEN a BUY 1 @ 200 dated Jan 2 is recorded
        THEN the pair is replayed: Jan 1 buy, Jan 2 buy (avg 150), Jan 3 sell -> 1 @ 150
        """
        pid = sample_portfolio.portfolio_id
        trade_factory(pid, TransactionType.BUY, "SOL", "1", "100", timestamp=utc_datetime(2024, 1, 1))
        trade_factory(pid, TransactionType.SELL, "SOL", "1", "120", timestamp=utc_datetime(2024, 1, 3))
        assert position_repo.get(pid, "SOL") is None

        result = trade_factory(
            pid, TransactionType.BUY, "SOL", "1", "200", timestamp=utc_datetime(2024, 1, 2)
        )

        assert result.replayed is True
        assert result.position.quantity == Decimal("1")
        assert result.position.average_cost == Decimal("150")
        assert position_repo.get(pid, "SOL").average_cost == Decimal("150")


# =============================================================================
# TRANSACTION QUERIES
# =============================================================================


class TestTransactionQueries:
    """Tests for listing, history and deletion."""

    def test_list_transactions_newest_first(self, sample_portfolio: Portfolio, trade_factory, ledger_service):
        pid = sample_portfolio.portfolio_id
        trade_factory(pid, TransactionType.BUY, "BTC", "1", "1", timestamp=utc_datetime(2024, 1, 1))
        trade_factory(pid, TransactionType.BUY, "ETH", "1", "1", timestamp=utc_datetime(2024, 1, 5))
        trade_factory(pid, TransactionType.BUY, "SOL", "1", "1", timestamp=utc_datetime(2024, 1, 3))

        symbols = [t.symbol for t in ledger_service.list_transactions(pid)]

        assert symbols == ["ETH", "SOL", "BTC"]

    def test_history_spans_owner_portfolios_with_limit(
        self,
        ledger_service: LedgerService,
        portfolio_factory,
        trade_factory,
    ):
        """
        GIVEN two portfolios for user-1 and one for user-2
        WHEN history for user-1 is requested with limit 2
        THEN the two newest user-1 transactions are returned
        """
        a = portfolio_factory("user-1")
        b = portfolio_factory("user-1")
        other = portfolio_factory("user-2")
        trade_factory(a.portfolio_id, TransactionType.BUY, "BTC", "1", "1", timestamp=utc_datetime(2024, 1, 1))
        trade_factory(b.portfolio_id, TransactionType.BUY, "ETH", "1", "1", timestamp=utc_datetime(2024, 1, 2))
        trade_factory(a.portfolio_id, TransactionType.BUY, "SOL", "1", "1", timestamp=utc_datetime(2024, 1, 3))
        trade_factory(other.portfolio_id, TransactionType.BUY, "BTC", "1", "1", timestamp=utc_datetime(2024, 1, 4))

        history = ledger_service.transaction_history("user-1", limit=2)

        assert [t.symbol for t in history] == ["SOL", "ETH"]

    def test_get_unknown_transaction_raises(self, ledger_service: LedgerService):
        with pytest.raises(NotFoundError):
            ledger_service.get_transaction("missing")

    def test_delete_transaction_replays_position(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        trade_factory,
    ):
        """
        GIVEN BUY 0.5@65000 and BUY 0.3@68000
        WHEN the second BUY is deleted
        THEN the position returns to 0.5 @ 65000
        """
        pid = sample_portfolio.portfolio_id
        trade_factory(pid, TransactionType.BUY, "BTC", "0.5", "65000")
        second = trade_factory(pid, TransactionType.BUY, "BTC", "0.3", "68000")

        position = ledger_service.delete_transaction(second.transaction.txn_id)

        assert position.quantity == Decimal("0.5")
        assert position.average_cost == Decimal("65000")
        with pytest.raises(NotFoundError):
            ledger_service.get_transaction(second.transaction.txn_id)

    def test_delete_only_transaction_removes_position(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        trade_factory,
        position_repo,
    ):
        pid = sample_portfolio.portfolio_id
        only = trade_factory(pid, TransactionType.BUY, "BTC", "1", "1")

        assert ledger_service.delete_transaction(only.transaction.txn_id) is None
        assert position_repo.get(pid, "BTC") is None


# =============================================================================
# POSITIONS
# =============================================================================


class TestPositions:
    """Tests for position access and rebuild."""

    def test_get_position_unknown_symbol_raises(self, ledger_service, sample_portfolio):
        with pytest.raises(NotFoundError):
            ledger_service.get_position(sample_portfolio.portfolio_id, "DOGE")

    def test_rebuild_positions_matches_incremental_state(
        self,
        ledger_service: LedgerService,
        sample_portfolio: Portfolio,
        trade_factory,
        position_repo,
    ):
        """
        GIVEN trades across BTC and ETH and a wiped position table
        WHEN rebuild_positions runs
        THEN positions match the incrementally maintained ones
        """
        pid = sample_portfolio.portfolio_id
        trade_factory(pid, TransactionType.BUY, "BTC", "0.5", "65000")
        trade_factory(pid, TransactionType.BUY, "BTC", "0.3", "68000")
        trade_factory(pid, TransactionType.BUY, "ETH", "2", "3000")
        trade_factory(pid, TransactionType.SELL, "ETH", "0.5", "3500")
        before = {p.symbol: (p.quantity, p.average_cost) for p in ledger_service.get_positions(pid)}

        position_repo.delete_by_portfolio(pid)
        rebuilt = ledger_service.rebuild_positions(pid)

        after = {p.symbol: (p.quantity, p.average_cost) for p in rebuilt}
        assert after == before
        assert after["ETH"] == (Decimal("1.5"), Decimal("3000"))
