"""
Shared fixtures: a temporary SQLite database per test and a fresh app bound to it.
"""
from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Garante que o pacote promo_api seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fastapi.testclient import TestClient

from promo_api.app import create_app
from promo_api.core import config as core_config
from promo_api.db import models
from promo_api.db import session as db_session
from promo_api.repositories.sql_repository import SQLRepository

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _clear_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Configura um SQLite temporário e garante teardown completo para não deixar o arquivo bloqueado no Windows."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("JWT_SECRET", "test-secret-key-for-the-gibipromo-suite")
    monkeypatch.setenv("AUTH_RATE_LIMIT", "0")
    # limpa caches para forçar re-leitura de envs
    _clear_caches()

    engine = db_session.get_engine()
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()
    _clear_caches()


@pytest.fixture()
def repo(temp_db) -> SQLRepository:
    return SQLRepository()


@pytest.fixture()
def app(temp_db):
    return create_app()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_product(repo):
    """Factory de produtos; ``minutes`` desloca updated_at a partir de BASE_TIME."""
    counter = {"n": 0}

    def _make(title: str, price: float = 30.0, full_price: float = 50.0, minutes: int = 0, **extra):
        counter["n"] += 1
        product_id = extra.pop("id", f"B{counter['n']:09d}")
        stamp = BASE_TIME + timedelta(minutes=minutes)
        data = {
            "title": title,
            "price": price,
            "full_price": full_price,
            "url": f"https://www.amazon.com.br/dp/{product_id}",
            "in_stock": True,
            "created_at": stamp,
            "updated_at": stamp,
        }
        data.update(extra)
        return repo.upsert_product(product_id, data)

    return _make


def register(client: TestClient, email: str = "reader@example.com", password: str = "secret123") -> dict:
    response = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture()
def auth(client):
    """Registra um usuário e devolve (user_id, headers)."""
    data = register(client)
    return data["user"]["id"], {"Authorization": f"Bearer {data['token']}"}
