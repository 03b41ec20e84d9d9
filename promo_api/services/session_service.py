"""Bearer token helpers used as FastAPI dependencies."""
from __future__ import annotations

from typing import Optional

from fastapi import Request

from promo_api.core.errors import ServiceError
from promo_api.db.models import User
from promo_api.services.auth_service import AuthService, TokenInvalidError


class AuthenticationRequired(ServiceError):
    status_code = 401


def _get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService nao configurado")
    return svc


def _bearer_token(request: Request) -> str:
    header = request.headers.get("authorization")
    if not header:
        raise AuthenticationRequired("No authorization header provided")
    if not header.startswith("Bearer "):
        raise AuthenticationRequired("Invalid authorization format. Use: Bearer <token>")
    token = header[len("Bearer ") :].strip()
    if not token:
        raise AuthenticationRequired("No token provided")
    return token


def current_user(request: Request) -> User:
    """Dependency for routes that require a valid Bearer token."""
    token = _bearer_token(request)
    try:
        user = _get_auth_service(request).validate_token(token)
    except TokenInvalidError as exc:
        raise AuthenticationRequired(exc.message) from exc
    request.state.user = user
    return user


def optional_user(request: Request) -> Optional[User]:
    """Same as current_user, but anonymous requests go through with None."""
    try:
        return current_user(request)
    except AuthenticationRequired:
        return None
