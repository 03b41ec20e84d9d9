from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from promo_api.core.responses import error_response, ok
from promo_api.db.models import User
from promo_api.services.link_accounts_service import LinkAccountsError, LinkAccountsService
from promo_api.services.session_service import current_user

router = APIRouter(prefix="/link-telegram", tags=["link-accounts"])


def _get_link_service(request: Request) -> LinkAccountsService:
    svc = getattr(getattr(request.app, "state", None), "link_accounts_service", None)
    if not svc:
        raise RuntimeError("LinkAccountsService nao configurado")
    return svc


@router.post("")
def link_telegram(request: Request, payload: Optional[dict[str, Any]] = Body(None), user: User = Depends(current_user)):
    try:
        message = _get_link_service(request).link_telegram(user.id, (payload or {}).get("token"))
    except LinkAccountsError as exc:
        return error_response(exc)
    return ok({"message": message}, message)


@router.get("/status")
def link_status(request: Request, user: User = Depends(current_user)):
    try:
        status = _get_link_service(request).get_link_status(user.id)
    except LinkAccountsError as exc:
        return error_response(exc)
    return ok(status.to_dict())
