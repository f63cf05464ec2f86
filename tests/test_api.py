"""End-to-end tests through the HTTP layer."""

import pytest
from fastapi.testclient import TestClient

from app.main import get_application
from expense_ledger.orchestrator import create_app_components
from tests.conftest import PASSWORD


@pytest.fixture
def client(database_settings, jwt_settings, app_settings):
    components = create_app_components(
        database_settings=database_settings,
        jwt_settings=jwt_settings,
        app_settings=app_settings,
    )
    with TestClient(get_application(components)) as test_client:
        yield test_client


def register(client, email="alice@fastmail.com", full_name="Alice Andrews"):
    return client.post("/api/v1/auth/register", json={
        "email": email,
        "full_name": full_name,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
    })


def login(client, email="alice@fastmail.com", password=PASSWORD):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def auth_headers(client, email="alice@fastmail.com"):
    register(client, email)
    token = login(client, email).json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


def add(client, headers, description, amount, kind, day="2024-03-01T00:00:00Z"):
    return client.post("/api/v1/transactions", headers=headers, json={
        "description": description,
        "amount": amount,
        "kind": kind,
        "transaction_date": day,
    })


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "operational"


class TestAuthRoutes:
    """Tests for /auth endpoints and status mapping."""

    def test_register(self, client):
        response = register(client)

        assert response.status_code == 201
        assert response.json()["data"]["email"] == "alice@fastmail.com"
        assert "password_hash" not in response.json()["data"]

    def test_register_duplicate_is_conflict(self, client):
        register(client)
        response = register(client)

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "duplicate_email"

    def test_register_invalid_is_bad_request(self, client):
        response = register(client, email="nope", full_name="Al")

        assert response.status_code == 400
        fields = {issue["field"] for issue in response.json()["detail"]["issues"]}
        assert fields == {"email", "full_name"}

    def test_login_wrong_password_is_unauthorized(self, client):
        register(client)
        response = login(client, password="wrong-password")

        assert response.status_code == 401
        assert response.json()["detail"]["message"] == "Invalid email or password."

    def test_logout_revokes_token(self, client):
        headers = auth_headers(client)

        assert client.get("/api/v1/auth/validate", headers=headers).json() == {"valid": True}
        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/v1/auth/validate", headers=headers).status_code == 401
        assert client.get("/api/v1/transactions", headers=headers).status_code == 401

    def test_validate_requires_bearer(self, client):
        response = client.get("/api/v1/auth/validate")

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "unauthorized"

    def test_missing_bearer_is_unauthorized(self, client):
        response = client.get("/api/v1/transactions")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"


class TestTransactionRoutes:
    """Tests for /transactions endpoints."""

    def test_balance_follows_mutations(self, client):
        headers = auth_headers(client)

        salary = add(client, headers, "Salary", "1000.00", "Income")
        assert salary.status_code == 201
        rent = add(client, headers, "Rent", "400.00", "expense")

        rent_id = rent.json()["data"]["id"]
        response = client.put(f"/api/v1/transactions/{rent_id}", headers=headers, json={
            "description": "Rent",
            "amount": "500.00",
            "kind": "Expense",
            "transaction_date": "2024-03-01T00:00:00Z",
        })
        assert response.status_code == 200

        balance = client.get("/api/v1/transactions/balance", headers=headers)
        assert balance.json()["data"] == "500.00"

        salary_id = salary.json()["data"]["id"]
        assert client.delete(f"/api/v1/transactions/{salary_id}", headers=headers).status_code == 200

        balance = client.get("/api/v1/transactions/balance", headers=headers)
        assert balance.json()["data"] == "-500.00"

    def test_invalid_kind_is_bad_request(self, client):
        headers = auth_headers(client)
        response = add(client, headers, "Move money", "10.00", "Transfer")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_kind"

    def test_foreign_transaction_is_not_found(self, client):
        alice = auth_headers(client, "alice@fastmail.com")
        bob = auth_headers(client, "bob@fastmail.com")
        entry_id = add(client, alice, "Salary", "1000.00", "Income").json()["data"]["id"]

        response = client.delete(f"/api/v1/transactions/{entry_id}", headers=bob)

        assert response.status_code == 404
        listing = client.get("/api/v1/transactions", headers=alice).json()["data"]
        assert [t["id"] for t in listing] == [entry_id]

    def test_list_is_newest_first(self, client):
        headers = auth_headers(client)
        add(client, headers, "Older", "1.00", "Expense", day="2024-01-01T00:00:00Z")
        add(client, headers, "Newer", "1.00", "Expense", day="2024-02-01T00:00:00Z")

        listing = client.get("/api/v1/transactions", headers=headers).json()["data"]
        assert [t["description"] for t in listing] == ["Newer", "Older"]
