from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from promo_api.core.responses import error_response, ok
from promo_api.db.models import User
from promo_api.services.session_service import current_user
from promo_api.services.user_preferences_service import PreferencesError, UserPreferencesService
from promo_api.services.user_profile_service import ProfileError, UserProfileService

router = APIRouter(prefix="/users", tags=["users"])


def _get_profile_service(request: Request) -> UserProfileService:
    svc = getattr(getattr(request.app, "state", None), "user_profile_service", None)
    if not svc:
        raise RuntimeError("UserProfileService nao configurado")
    return svc


def _get_preferences_service(request: Request) -> UserPreferencesService:
    svc = getattr(getattr(request.app, "state", None), "user_preferences_service", None)
    if not svc:
        raise RuntimeError("UserPreferencesService nao configurado")
    return svc


# -------------------------------------- perfil --------------------------------------
@router.get("/profile")
def get_profile(request: Request, user: User = Depends(current_user)):
    try:
        profile = _get_profile_service(request).get_profile(user.id)
    except ProfileError as exc:
        return error_response(exc)
    return ok(profile, "Profile retrieved successfully")


@router.put("/profile")
def update_profile(request: Request, payload: Optional[dict[str, Any]] = Body(None), user: User = Depends(current_user)):
    try:
        profile = _get_profile_service(request).update_nick(user.id, (payload or {}).get("nick"))
    except ProfileError as exc:
        return error_response(exc)
    return ok(profile, "Profile updated successfully")


# -------------------------------------- preferencias --------------------------------------
@router.get("/preferences")
def get_preferences(request: Request, user: User = Depends(current_user)):
    try:
        prefs = _get_preferences_service(request).get_preferences(user.id)
    except PreferencesError as exc:
        return error_response(exc)
    return ok(prefs, "Preferences retrieved successfully")


@router.put("/preferences")
def update_preferences(
    request: Request,
    payload: Optional[dict[str, Any]] = Body(None),
    user: User = Depends(current_user),
):
    try:
        prefs = _get_preferences_service(request).update_preferences(user.id, payload or {})
    except PreferencesError as exc:
        return error_response(exc)
    return ok(prefs, "Preferences updated successfully")
