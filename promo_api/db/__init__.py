"""SQLAlchemy engine, sessions and the ORM models of the promo API."""

from .session import Base, get_engine, get_session

__all__ = ["Base", "get_engine", "get_session"]
