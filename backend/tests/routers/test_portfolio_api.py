# tests/routers/test_portfolio_api.py
"""
API layer tests for /api/portfolio.

Prices come from the MockPriceFeed fixture (BTC 45000, ETH 3000).

Tests:
- GET    /api/portfolio
- GET    /api/portfolio/performance
- PATCH  /api/portfolio
- POST   /api/portfolio/holdings
- PUT    /api/portfolio/holdings/{id}
- DELETE /api/portfolio/holdings/{id}
"""

from decimal import Decimal

import pytest

from cryptofolio.services.exceptions import ProviderUnavailableError

BTC_PURCHASE = {
    "asset_id": "1",
    "name": "Bitcoin",
    "symbol": "btc",
    "amount": "1.5",
    "unit_cost": "40000",
}


@pytest.fixture
def add_btc(client, auth_headers):
    def _add(**overrides):
        response = client.post(
            "/api/portfolio/holdings",
            json={**BTC_PURCHASE, **overrides},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _add


class TestGetPortfolio:
    """Tests for GET /api/portfolio."""

    def test_created_on_first_access(self, client, auth_headers):
        """Should return an empty portfolio with zero performance."""
        response = client.get("/api/portfolio", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["display_name"] == "My Portfolio"
        assert data["holdings"] == []
        assert data["version"] == 1
        assert Decimal(data["performance"]["total_market_value"]) == 0
        assert data["performance"]["holdings_count"] == 0

    def test_includes_valuation(self, client, auth_headers, add_btc):
        add_btc()

        data = client.get("/api/portfolio", headers=auth_headers).json()

        performance = data["performance"]
        assert Decimal(performance["total_market_value"]) == Decimal("67500")
        assert Decimal(performance["total_cost_basis"]) == Decimal("60000")
        assert Decimal(performance["total_gain"]) == Decimal("7500")
        assert Decimal(performance["total_gain_percent"]) == Decimal("12.5")
        assert performance["holdings"][0]["has_price"] is True

    def test_requires_auth(self, client):
        assert client.get("/api/portfolio").status_code == 401

    def test_portfolios_are_per_user(self, client, add_btc, make_user, make_auth_headers):
        """Another user should not see the first user's holdings."""
        add_btc()
        other = make_user(email="other@example.com")

        data = client.get("/api/portfolio", headers=make_auth_headers(other)).json()

        assert data["holdings"] == []


class TestPerformance:
    """Tests for GET /api/portfolio/performance."""

    def test_missing_price(self, client, auth_headers, add_btc):
        """Holdings without a price are valued at 0 and listed."""
        add_btc()
        add_btc(asset_id="5426", name="Solana", symbol="SOL", amount="10", unit_cost="100")

        data = client.get("/api/portfolio/performance", headers=auth_headers).json()

        assert data["missing_prices"] == ["SOL"]
        sol = data["holdings"][1]
        assert sol["has_price"] is False
        assert Decimal(sol["market_value"]) == 0
        assert Decimal(sol["gain_percent"]) == Decimal("-100")

    def test_feed_outage_values_at_zero(self, client, auth_headers, add_btc, price_feed):
        """Should still return 200 when the price feed fails."""
        add_btc()
        price_feed.fail_with(ProviderUnavailableError(provider="mock", reason="down"))

        response = client.get("/api/portfolio/performance", headers=auth_headers)

        assert response.status_code == 200
        assert Decimal(response.json()["total_market_value"]) == 0
        assert response.json()["missing_prices"] == ["BTC"]

    def test_rounds_for_display(self, client, auth_headers, add_btc, price_feed):
        """Money is rounded to 2 places, percentages to 2."""
        price_feed.set_price("BTC", "45000.123456")
        add_btc(amount="0.33333333", unit_cost="40000")

        data = client.get("/api/portfolio/performance", headers=auth_headers).json()

        holding = data["holdings"][0]
        assert holding["market_value"] == "15000.04"
        assert holding["cost_basis"] == "13333.33"
        assert holding["gain_percent"] == "12.50"
        assert holding["current_price"] == "45000.12345600"

    def test_large_holding_values(self, client, auth_headers, add_btc):
        """Should value a very large holding without a decimal error."""
        add_btc(amount="9000000000000000", unit_cost="0.01")

        response = client.get("/api/portfolio/performance", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_market_value"] == "405000000000000000000.00"
        assert data["holdings"][0]["amount"] == "9000000000000000.00000000"


class TestAddHolding:
    """Tests for POST /api/portfolio/holdings."""

    def test_add_holding(self, add_btc):
        data = add_btc()

        assert data["version"] == 2
        holding = data["holdings"][0]
        assert holding["symbol"] == "BTC"
        assert Decimal(holding["amount"]) == Decimal("1.5")
        assert Decimal(holding["cost_basis"]) == Decimal("60000")
        assert Decimal(data["total_cost_basis"]) == Decimal("60000")
        assert "performance" not in data

    def test_merge_same_asset(self, add_btc):
        """A second purchase of the same asset merges at weighted cost."""
        add_btc(amount="1", unit_cost="100")
        data = add_btc(amount="3", unit_cost="200")

        assert len(data["holdings"]) == 1
        assert Decimal(data["holdings"][0]["amount"]) == Decimal("4")
        assert Decimal(data["holdings"][0]["unit_cost"]) == Decimal("175")

    def test_missing_field(self, client, auth_headers):
        """Should name the missing field in a 400 response."""
        body = {k: v for k, v in BTC_PURCHASE.items() if k != "symbol"}

        response = client.post("/api/portfolio/holdings", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "missing field: symbol"
        assert response.json()["details"] == {"field": "symbol"}

    @pytest.mark.parametrize("field", ["amount", "unit_cost"])
    def test_non_positive(self, client, auth_headers, field):
        response = client.post(
            "/api/portfolio/holdings",
            json={**BTC_PURCHASE, field: "0"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "amount/price must be positive"

    def test_too_many_decimals(self, client, auth_headers):
        response = client.post(
            "/api/portfolio/holdings",
            json={**BTC_PURCHASE, "amount": "0.123456789"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_amount_above_column_bound(self, client, auth_headers):
        response = client.post(
            "/api/portfolio/holdings",
            json={**BTC_PURCHASE, "amount": "100000000000000000"},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_cost_basis_above_bound(self, client, auth_headers):
        """Should reject an oversized cost basis and leave the portfolio readable."""
        response = client.post(
            "/api/portfolio/holdings",
            json={**BTC_PURCHASE, "amount": "1000000000000000", "unit_cost": "1000000000000000"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("total cost basis must be at most")
        assert response.json()["details"] == {"field": "amount"}

        performance = client.get("/api/portfolio/performance", headers=auth_headers)
        assert performance.status_code == 200
        assert performance.json()["holdings"] == []

    def test_merge_above_column_bound(self, client, auth_headers, add_btc):
        """A merge that overflows the amount column is rejected, the holding kept."""
        add_btc(amount="9000000000000000", unit_cost="0.01")

        response = client.post(
            "/api/portfolio/holdings",
            json={**BTC_PURCHASE, "amount": "9000000000000000", "unit_cost": "0.01"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("amount must be at most")

        data = client.get("/api/portfolio", headers=auth_headers).json()
        assert len(data["holdings"]) == 1
        assert Decimal(data["holdings"][0]["amount"]) == Decimal("9000000000000000")

    def test_backdated_purchase(self, add_btc):
        data = add_btc(acquired_at="2021-11-10T00:00:00")

        assert data["holdings"][0]["acquired_at"].startswith("2021-11-10")


class TestUpdateHolding:
    """Tests for PUT /api/portfolio/holdings/{id}."""

    def test_update(self, client, auth_headers, add_btc):
        holding_id = add_btc()["holdings"][0]["id"]

        response = client.put(
            f"/api/portfolio/holdings/{holding_id}",
            json={"amount": "2", "note": "cold storage"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        holding = response.json()["holdings"][0]
        assert Decimal(holding["amount"]) == Decimal("2")
        assert Decimal(holding["unit_cost"]) == Decimal("40000")
        assert holding["note"] == "cold storage"
        assert Decimal(response.json()["total_cost_basis"]) == Decimal("80000")

    def test_unknown_holding(self, client, auth_headers):
        response = client.put(
            "/api/portfolio/holdings/does-not-exist",
            json={"amount": "2"},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "HoldingNotFoundError"

    def test_negative_amount(self, client, auth_headers, add_btc):
        holding_id = add_btc()["holdings"][0]["id"]

        response = client.put(
            f"/api/portfolio/holdings/{holding_id}",
            json={"amount": "-1"},
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestRemoveHolding:
    """Tests for DELETE /api/portfolio/holdings/{id}."""

    def test_remove(self, client, auth_headers, add_btc):
        holding_id = add_btc()["holdings"][0]["id"]

        response = client.delete(f"/api/portfolio/holdings/{holding_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["holdings"] == []
        assert Decimal(response.json()["total_cost_basis"]) == 0

    def test_cannot_remove_other_users_holding(
            self, client, add_btc, make_user, make_auth_headers
    ):
        holding_id = add_btc()["holdings"][0]["id"]
        other = make_user(email="other@example.com")

        response = client.delete(
            f"/api/portfolio/holdings/{holding_id}",
            headers=make_auth_headers(other),
        )

        assert response.status_code == 404


class TestRename:
    """Tests for PATCH /api/portfolio."""

    def test_rename(self, client, auth_headers):
        response = client.patch("/api/portfolio", json={"name": "Cold wallet"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["display_name"] == "Cold wallet"

    def test_blank_name(self, client, auth_headers):
        response = client.patch("/api/portfolio", json={"name": "   "}, headers=auth_headers)

        assert response.status_code == 400
