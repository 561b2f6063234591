# tests/routers/test_validation_api.py
"""Tests for the form validation endpoints."""

from fastapi.testclient import TestClient

from tests.routers.conftest import create_account_via_api


class TestMonetaryValidation:
    """Tests for POST /validation/monetary."""

    def test_valid_amount(self, client: TestClient):
        response = client.post("/validation/monetary", json={"value": " 1234.50 "})

        assert response.status_code == 200
        assert response.json() == {
            "is_valid": True,
            "value": "1234.50",
            "error": None,
            "message": None,
        }

    def test_invalid_amount_is_still_200(self, client: TestClient):
        response = client.post("/validation/monetary", json={"value": "1e5"})

        assert response.status_code == 200
        data = response.json()
        assert data["is_valid"] is False
        assert data["error"] == "bad_format"
        assert data["message"] == "Invalid number format"

    def test_too_large(self, client: TestClient):
        data = client.post("/validation/monetary", json={"value": "1000000000.01"}).json()

        assert data["error"] == "too_large"


class TestAccountNameValidation:
    """Tests for POST /validation/account-name."""

    def test_valid_name_is_trimmed(self, client: TestClient):
        data = client.post("/validation/account-name", json={"name": "  Pension  "}).json()

        assert data["is_valid"] is True
        assert data["value"] == "Pension"

    def test_duplicate_against_existing_accounts(self, client: TestClient):
        create_account_via_api(client, name="Savings")

        data = client.post("/validation/account-name", json={"name": "savings"}).json()

        assert data["is_valid"] is False
        assert data["error"] == "duplicate"

    def test_empty_name(self, client: TestClient):
        data = client.post("/validation/account-name", json={"name": "   "}).json()

        assert data["error"] == "empty"
