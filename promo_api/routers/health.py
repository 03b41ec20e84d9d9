from __future__ import annotations

import os
import platform
import time

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from promo_api.core.config import get_settings
from promo_api.core.responses import ok
from promo_api.db.session import get_session

router = APIRouter(prefix="/health", tags=["health"])


def _base_status(request: Request) -> dict:
    settings = get_settings()
    started_at = getattr(request.app.state, "started_at", time.time())
    return {
        "status": "ok",
        "timestamp": int(time.time() * 1000),
        "uptime": round(time.time() - started_at, 3),
        "environment": settings.app_env,
        "version": settings.app_version,
    }


def _database_status() -> str:
    try:
        with get_session() as session:
            session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return "unavailable"
    return "connected"


@router.get("")
def health(request: Request):
    return ok(_base_status(request), "API is healthy")


@router.get("/detailed")
def health_detailed(request: Request):
    data = _base_status(request)
    data["system"] = {
        "platform": platform.platform(),
        "python_version": platform.python_version(),
        "pid": os.getpid(),
    }
    data["services"] = {"database": _database_status()}
    return ok(data, "Detailed health check")
