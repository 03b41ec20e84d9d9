"""
Configuration helpers for the GibiPromo web API.

Routers and services read settings through get_settings() instead of fetching
os.environ directly. Tests call get_settings.cache_clear() after changing env.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_JWT_SECRET = "gibipromo-development-secret-change-me-in-production"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    app_version: str
    api_prefix: str
    database_url: str
    jwt_secret: str
    jwt_expires_in: str
    jwt_algorithm: str
    cors_origins: tuple[str, ...]
    log_level: str
    products_cache_ttl_seconds: int
    products_scan_limit: int
    auth_rate_limit: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _list(value: str | None) -> tuple[str, ...]:
        return tuple(item.strip().rstrip("/") for item in (value or "").split(",") if item.strip())

    prefix = (os.getenv("API_PREFIX") or "/api/v1").strip().rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        api_prefix=prefix,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./promo.db"),
        jwt_secret=os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
        jwt_expires_in=os.getenv("JWT_EXPIRES_IN", "7d"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        cors_origins=_list(os.getenv("CORS_ORIGINS", "http://localhost:3001,https://gibipromo.com")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        products_cache_ttl_seconds=_int(os.getenv("PRODUCTS_CACHE_TTL_SECONDS", "300"), 300),
        products_scan_limit=_int(os.getenv("PRODUCTS_SCAN_LIMIT", "1000"), 1000),
        auth_rate_limit=_int(os.getenv("AUTH_RATE_LIMIT", "10"), 10),
    )
