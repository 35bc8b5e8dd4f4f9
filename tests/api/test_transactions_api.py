"""
API tests for transaction endpoints.

Tests cover:
- Submit BUY and SELL trades
- Position removal on a full SELL
- Strict vs permissive sells
- Listing, history, lookup and deletion
- Validation errors (400) and missing resources (404)
"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient


# =============================================================================
# HELPER FIXTURES
# =============================================================================


@pytest.fixture
def test_portfolio(client: TestClient) -> dict:
    """Create a test portfolio and return its data."""
    response = client.post("/portfolios", json={"owner_id": "user-1", "name": "Main"})
    return response.json()


def trade(client: TestClient, portfolio_id: str, txn_type: str, symbol: str, quantity: str, price: str, **extra):
    payload = {
        "portfolio_id": portfolio_id,
        "txn_type": txn_type,
        "symbol": symbol,
        "quantity": quantity,
        "price": price,
    }
    payload.update(extra)
    return client.post("/transactions", json=payload)


# =============================================================================
# SUBMIT TRADE TESTS
# =============================================================================


class TestSubmitTradeAPI:
    """Tests for POST /transactions."""

    def test_buy_success(self, client: TestClient, test_portfolio: dict):
        """
        GIVEN a portfolio exists
        WHEN I POST a BUY of 0.5 btc @ 65000 with fee 10
        THEN response is 201 with the transaction and the new position
        """
        response = trade(
            client, test_portfolio["portfolio_id"], "BUY", "btc", "0.5", "65000",
            fee="10", note="first buy",
        )

        assert response.status_code == 201
        data = response.json()
        txn = data["transaction"]
        assert txn["txn_id"]
        assert txn["txn_type"] == "BUY"
        assert txn["symbol"] == "BTC"
        assert Decimal(txn["fee"]) == Decimal("10")
        assert Decimal(txn["gross_amount"]) == Decimal("32500")
        assert txn["note"] == "first buy"
        assert Decimal(data["position"]["quantity"]) == Decimal("0.5")
        assert data["removed"] is None
        assert data["replayed"] is False

    def test_full_sell_reports_removed_position(self, client: TestClient, test_portfolio: dict):
        """
        GIVEN 0.8 BTC @ 66125 after two BUYs and a partial SELL of 0.3
        WHEN the remaining 0.5 is sold
        THEN the response carries the removed position and no position remains
        """
        pid = test_portfolio["portfolio_id"]
        trade(client, pid, "BUY", "BTC", "0.5", "65000")
        trade(client, pid, "BUY", "BTC", "0.3", "68000")
        partial = trade(client, pid, "SELL", "BTC", "0.3", "70000").json()
        assert Decimal(partial["position"]["average_cost"]) == Decimal("66125")

        response = trade(client, pid, "SELL", "BTC", "0.5", "71000")

        assert response.status_code == 201
        data = response.json()
        assert data["position"] is None
        assert Decimal(data["removed"]["sold_quantity"]) == Decimal("0.5")
        assert Decimal(data["removed"]["discarded_cost_basis"]) == Decimal("33062.5")
        assert client.get(f"/portfolios/{pid}/positions").json()["total"] == 0

    def test_permissive_sell_without_position(self, client: TestClient, test_portfolio: dict):
        response = trade(client, test_portfolio["portfolio_id"], "SELL", "ETH", "1", "3000")

        assert response.status_code == 201
        assert response.json()["position"] is None
        assert response.json()["removed"] is None

    def test_strict_sell_rejected(self, client: TestClient, test_portfolio: dict, app_context):
        app_context.settings.strict_sells = True

        response = trade(client, test_portfolio["portfolio_id"], "SELL", "ETH", "1", "3000")

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_HOLDINGS"

    def test_backdated_trade_is_replayed(self, client: TestClient, test_portfolio: dict):
        pid = test_portfolio["portfolio_id"]
        trade(client, pid, "BUY", "SOL", "1", "100", timestamp="2024-01-10T00:00:00Z")

        response = trade(client, pid, "BUY", "SOL", "1", "200", timestamp="2024-01-05T00:00:00Z")

        assert response.json()["replayed"] is True
        assert Decimal(response.json()["position"]["average_cost"]) == Decimal("150")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quantity": "0"},
            {"quantity": "-1"},
            {"price": "-1"},
            {"fee": "-0.5"},
            {"txn_type": "TRANSFER"},
            {"symbol": ""},
        ],
    )
    def test_invalid_trade_returns_400(self, client: TestClient, test_portfolio: dict, overrides: dict):
        payload = {
            "portfolio_id": test_portfolio["portfolio_id"],
            "txn_type": "BUY",
            "symbol": "BTC",
            "quantity": "1",
            "price": "100",
        }
        payload.update(overrides)

        response = client.post("/transactions", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_quantity_below_ledger_precision_returns_400(self, client: TestClient, test_portfolio: dict):
        """
        GIVEN a quantity smaller than the ledger's ten decimal places
        WHEN it is posted
        THEN it is rejected and the ledger stays empty
        """
        pid = test_portfolio["portfolio_id"]

        response = trade(client, pid, "BUY", "ETH", "0.00000000001", "100")

        assert response.status_code == 400
        assert client.get("/transactions", params={"portfolio_id": pid}).json()["transactions"] == []

    def test_unknown_portfolio_returns_404(self, client: TestClient):
        response = trade(client, "missing", "BUY", "BTC", "1", "100")

        assert response.status_code == 404


# =============================================================================
# QUERY AND DELETE TESTS
# =============================================================================


class TestTransactionQueriesAPI:
    """Tests for listing, history, lookup and deletion."""

    def test_list_newest_first(self, client: TestClient, test_portfolio: dict):
        pid = test_portfolio["portfolio_id"]
        trade(client, pid, "BUY", "BTC", "1", "1", timestamp="2024-01-01T00:00:00Z")
        trade(client, pid, "BUY", "ETH", "1", "1", timestamp="2024-01-03T00:00:00Z")

        response = client.get("/transactions", params={"portfolio_id": pid})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [t["symbol"] for t in data["transactions"]] == ["ETH", "BTC"]

    def test_history_with_limit(self, client: TestClient, test_portfolio: dict):
        pid = test_portfolio["portfolio_id"]
        for day in (1, 2, 3):
            trade(client, pid, "BUY", "BTC", "1", "1", timestamp=f"2024-01-0{day}T00:00:00Z")

        response = client.get("/transactions/history", params={"owner_id": "user-1", "limit": 2})

        assert response.json()["total"] == 2

    def test_get_transaction(self, client: TestClient, test_portfolio: dict):
        created = trade(client, test_portfolio["portfolio_id"], "BUY", "BTC", "1", "100").json()
        txn_id = created["transaction"]["txn_id"]

        response = client.get(f"/transactions/{txn_id}")

        assert response.status_code == 200
        assert response.json()["txn_id"] == txn_id

    def test_get_unknown_transaction_returns_404(self, client: TestClient):
        assert client.get("/transactions/missing").status_code == 404

    def test_delete_transaction_rebuilds_position(self, client: TestClient, test_portfolio: dict):
        """
        GIVEN BUY 0.5 @ 65000 and BUY 0.3 @ 68000
        WHEN the second BUY is deleted
        THEN the position is rebuilt to 0.5 @ 65000
        """
        pid = test_portfolio["portfolio_id"]
        trade(client, pid, "BUY", "BTC", "0.5", "65000")
        second = trade(client, pid, "BUY", "BTC", "0.3", "68000").json()
        txn_id = second["transaction"]["txn_id"]

        response = client.delete(f"/transactions/{txn_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["txn_id"] == txn_id
        assert Decimal(data["position"]["quantity"]) == Decimal("0.5")
        assert Decimal(data["position"]["average_cost"]) == Decimal("65000")
        assert client.get(f"/transactions/{txn_id}").status_code == 404
