from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import register
from promo_api.app import create_app

API = "/api/v1"


def test_register_and_login(client):
    data = register(client, "Reader@Example.com", "secret123")
    assert data["user"]["email"] == "reader@example.com"
    assert data["user"]["enabled"] is True

    response = client.post(f"{API}/auth/login", json={"email": "reader@example.com", "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Login successful"
    assert body["data"]["token"]


def test_register_errors_use_envelope(client):
    response = client.post(f"{API}/auth/register", json={"email": "bad", "password": "secret123"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid email format", "data": None}

    response = client.post(f"{API}/auth/register")
    assert response.status_code == 400
    assert response.json()["error"] == "Email and password are required"

    register(client, "dup@example.com")
    response = client.post(f"{API}/auth/register", json={"email": "dup@example.com", "password": "secret123"})
    assert response.json()["error"] == "Email already registered"


def test_login_wrong_password_is_401(client):
    register(client)
    response = client.post(f"{API}/auth/login", json={"email": "reader@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


def test_me_requires_bearer_token(client, auth):
    user_id, headers = auth
    response = client.get(f"{API}/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"id": user_id, "email": "reader@example.com"}

    cases = [
        ({}, "No authorization header provided"),
        ({"Authorization": "Token abc"}, "Invalid authorization format. Use: Bearer <token>"),
        ({"Authorization": "Bearer "}, "No token provided"),
        ({"Authorization": "Bearer abc.def.ghi"}, "Invalid token"),
    ]
    for hdrs, message in cases:
        response = client.get(f"{API}/auth/me", headers=hdrs)
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": message, "data": None}


def test_validate_endpoint(client):
    token = register(client)["token"]
    response = client.post(f"{API}/auth/validate", json={"token": token})
    assert response.status_code == 200
    assert response.json()["data"]["valid"] is True

    response = client.post(f"{API}/auth/validate", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "Token is required"

    response = client.post(f"{API}/auth/validate", json={"token": "garbage"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid token", "data": {"valid": False}}


def test_login_is_rate_limited(temp_db, monkeypatch):
    monkeypatch.setenv("AUTH_RATE_LIMIT", "2")
    from promo_api.core import config as core_config

    core_config.get_settings.cache_clear()
    with TestClient(create_app()) as client:
        payload = {"email": "x@example.com", "password": "secret123"}
        assert client.post(f"{API}/auth/login", json=payload).status_code == 401
        assert client.post(f"{API}/auth/login", json=payload).status_code == 401
        response = client.post(f"{API}/auth/login", json=payload)
        assert response.status_code == 429
        assert response.json()["success"] is False
