"""Engine e sessoes SQLAlchemy do promo API (SQLite em dev/testes, Postgres em producao)."""
from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from promo_api.core.config import get_settings

Base = declarative_base()


@lru_cache
def get_engine():
    settings = get_settings()
    url = (settings.database_url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL nao configurada; defina a URL do banco do GibiPromo.")
    # rotas sync rodam no threadpool do Starlette
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)


@lru_cache
def _get_sessionmaker():
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, expire_on_commit=False, future=True)


@contextmanager
def get_session() -> Session:
    """Sessao curta por operacao do repositorio; commit fica a cargo de quem chama."""
    session: Session = _get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
