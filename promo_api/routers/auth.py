from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from promo_api.core.config import get_settings
from promo_api.core.rate_limiter import rate_limit_ip
from promo_api.core.responses import error_response, fail, ok
from promo_api.db.models import User
from promo_api.services.auth_service import AuthError, AuthService, TokenInvalidError
from promo_api.services.session_service import current_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService nao configurado")
    return svc


def _limit(request: Request, scope: str) -> None:
    rate_limit_ip(request, scope, limit=get_settings().auth_rate_limit, window_seconds=60)


@router.post("/register")
def register(request: Request, payload: Optional[dict[str, Any]] = Body(None)):
    _limit(request, "auth:register")
    payload = payload or {}
    try:
        result = _get_auth_service(request).register(payload.get("email"), payload.get("password"))
    except AuthError as exc:
        return error_response(exc)
    return ok(result.to_dict(), "User registered successfully", status_code=201)


@router.post("/login")
def login(request: Request, payload: Optional[dict[str, Any]] = Body(None)):
    _limit(request, "auth:login")
    payload = payload or {}
    try:
        result = _get_auth_service(request).login(payload.get("email"), payload.get("password"))
    except AuthError as exc:
        return error_response(exc)
    return ok(result.to_dict(), "Login successful")


@router.get("/me")
def me(user: User = Depends(current_user)):
    return ok({"id": user.id, "email": user.email})


@router.post("/validate")
def validate(request: Request, payload: Optional[dict[str, Any]] = Body(None)):
    token = (payload or {}).get("token")
    if not token or not isinstance(token, str):
        return fail("Token is required", 400)
    try:
        user = _get_auth_service(request).validate_token(token)
    except TokenInvalidError as exc:
        return fail(exc.message, 401, data={"valid": False})
    return ok({"valid": True, "user": {"id": user.id, "email": user.email}})
