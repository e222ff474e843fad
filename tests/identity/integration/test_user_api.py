"""Integration tests for the Identity API endpoints."""

import pytest
from fastapi.testclient import TestClient

from app import create_app


@pytest.fixture
def client(database, settings):
    return TestClient(create_app(database=database, settings=settings))


class TestUserEndpoints:
    def test_register_and_get(self, client):
        response = client.post("/users", json={"username": "kim", "email": "kim@example.com"})

        assert response.status_code == 201
        user = response.json()
        assert user["role"] == "Customer"
        assert client.get(f"/users/{user['id']}").json()["email"] == "kim@example.com"

    def test_duplicate_email_is_conflict(self, client):
        client.post("/users", json={"username": "kim", "email": "kim@example.com"})

        response = client.post("/users", json={"username": "kim2", "email": "kim@example.com"})

        assert response.status_code == 409
        assert response.json()["field"] == "email"

    def test_invalid_email(self, client):
        response = client.post("/users", json={"username": "kim", "email": "not-an-email"})
        assert response.status_code == 422

    def test_missing_user(self, client):
        assert client.get("/users/12").status_code == 404
