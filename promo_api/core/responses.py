"""
Response envelope helpers.

Every endpoint answers with ``{success, data?, error?, message?}``.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from promo_api.core.errors import ServiceError


def ok(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return JSONResponse(jsonable_encoder(body), status_code=status_code)


def fail(error: str, status_code: int = 400, data: Any = None, **extra: Any) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": error, "data": data}
    body.update(extra)
    return JSONResponse(jsonable_encoder(body), status_code=status_code)


def error_response(err: ServiceError) -> JSONResponse:
    return fail(err.message, err.status_code)
