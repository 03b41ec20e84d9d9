from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from promo_api.core.responses import error_response, fail, ok
from promo_api.db.models import User
from promo_api.domain.amazon import MSG_REQUIRED
from promo_api.domain.constants import MAX_URLS_PER_REQUEST
from promo_api.services.product_actions_service import ProductActionError, ProductActionsService
from promo_api.services.session_service import current_user

router = APIRouter(prefix="/products", tags=["product-actions"])


def _get_actions_service(request: Request) -> ProductActionsService:
    svc = getattr(getattr(request.app, "state", None), "product_actions_service", None)
    if not svc:
        raise RuntimeError("ProductActionsService nao configurado")
    return svc


def _url_from(payload: Optional[dict[str, Any]]) -> Optional[str]:
    url = (payload or {}).get("url")
    if not isinstance(url, str) or not url.strip():
        return None
    return url.strip()


@router.post("/add")
def add_product(request: Request, payload: Optional[dict[str, Any]] = Body(None), user: User = Depends(current_user)):
    url = _url_from(payload)
    if not url:
        return fail(MSG_REQUIRED)
    try:
        result = _get_actions_service(request).add_product(user.id, url)
    except ProductActionError as exc:
        return error_response(exc)
    return ok(result.to_dict(), result.message, status_code=201)


@router.post("/add-multiple")
def add_multiple_products(
    request: Request,
    payload: Optional[dict[str, Any]] = Body(None),
    user: User = Depends(current_user),
):
    urls = (payload or {}).get("urls")
    if not isinstance(urls, list):
        return fail("URLs deve ser um array")
    if not urls:
        return fail("Lista de URLs não pode estar vazia")
    if len(urls) > MAX_URLS_PER_REQUEST:
        return fail("Máximo de 10 URLs por vez")
    if any(not isinstance(url, str) or not url.strip() for url in urls):
        return fail("Todas as URLs devem ser strings válidas")
    result = _get_actions_service(request).add_multiple_products(user.id, [url.strip() for url in urls])
    return ok(result.to_dict(), result.message, status_code=201)


@router.post("/validate-url")
def validate_url(request: Request, payload: Optional[dict[str, Any]] = Body(None)):
    url = _url_from(payload)
    if not url:
        return fail(MSG_REQUIRED)
    valid, message = _get_actions_service(request).validate_url(url)
    return ok({"valid": valid, "message": message})
