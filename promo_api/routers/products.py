from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from promo_api.core.responses import error_response, fail, ok
from promo_api.db.models import User
from promo_api.services.products_service import (
    PromotionFilters,
    ProductsError,
    ProductsService,
    SearchFilters,
)
from promo_api.services.session_service import current_user, optional_user

router = APIRouter(prefix="/products", tags=["products"])

MAX_PAGE_SIZE = 100
MAX_LATEST = 20
MAX_STATS_PERIOD = 365


def _get_products_service(request: Request) -> ProductsService:
    svc = getattr(getattr(request.app, "state", None), "products_service", None)
    if not svc:
        raise RuntimeError("ProductsService nao configurado")
    return svc


def _pagination_error(page: int, limit: int) -> Optional[str]:
    if page < 1:
        return "Page must be greater than 0"
    if limit < 1 or limit > MAX_PAGE_SIZE:
        return "Limit must be between 1 and 100"
    return None


def _price_error(min_price: Optional[float], max_price: Optional[float]) -> Optional[str]:
    if min_price is not None and min_price < 0:
        return "Min price must be greater than or equal to 0"
    if max_price is not None and max_price < 0:
        return "Max price must be greater than or equal to 0"
    if min_price is not None and max_price is not None and min_price > max_price:
        return "Min price cannot be greater than max price"
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


@router.get("")
def list_products(request: Request, page: int = 1, limit: int = 20):
    err = _pagination_error(page, limit)
    if err:
        return fail(err)
    result = _get_products_service(request).list_products(page, limit)
    return ok(result, f"Retrieved {len(result['data'])} products")


@router.get("/search")
def search_products(
    request: Request,
    q: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    category: Optional[str] = None,
    format: Optional[str] = None,
    genre: Optional[str] = None,
    publisher: Optional[str] = None,
    available: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
):
    err = _pagination_error(page, limit) or _price_error(min_price, max_price)
    if err:
        return fail(err)
    filters = SearchFilters(
        query=_clean(q),
        min_price=min_price,
        max_price=max_price,
        category=_clean(category),
        format=_clean(format),
        genre=_clean(genre),
        publisher=_clean(publisher),
        available=available,
    )
    result = _get_products_service(request).search_products(filters, page, limit)
    return ok(result, f"Found {result['pagination']['total']} products")


@router.get("/promotions")
def get_promotions(
    request: Request,
    q: Optional[str] = None,
    category: Optional[str] = None,
    publisher: Optional[str] = None,
    genre: Optional[str] = None,
    format: Optional[str] = None,
    contributors: Optional[str] = None,
    preorder: Optional[bool] = None,
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    only_my_products: bool = Query(False, alias="onlyMyProducts"),
    sort_by: str = Query("discount", alias="sortBy"),
    page: int = 1,
    limit: int = 20,
    user: Optional[User] = Depends(optional_user),
):
    err = _pagination_error(page, limit)
    if err:
        return fail(err)
    filters = PromotionFilters(
        query=_clean(q),
        category=_clean(category),
        publisher=_clean(publisher),
        genre=_clean(genre),
        format=_clean(format),
        contributors=[c.strip() for c in (contributors or "").split("|") if c.strip()],
        preorder=preorder,
        in_stock=in_stock,
        only_my_products=only_my_products,
        sort_by=sort_by,
    )
    try:
        result = _get_products_service(request).get_promotions(filters, page, limit, user.id if user else None)
    except ProductsError as exc:
        return error_response(exc)
    return ok(result, f"Found {result['pagination']['total']} promotions")


@router.get("/filter-options")
def get_filter_options(request: Request):
    return ok(_get_products_service(request).get_filter_options(), "Filter options retrieved")


@router.get("/latest-promotions")
def get_latest_promotions(request: Request, limit: int = 3):
    if limit < 1 or limit > MAX_LATEST:
        return fail("Limit must be between 1 and 20")
    items = _get_products_service(request).get_latest_promotions(limit)
    return ok(items, f"Retrieved {len(items)} promotions")


@router.delete("/cache")
def clear_cache(request: Request, key: Optional[str] = None, user: User = Depends(current_user)):
    svc = _get_products_service(request)
    key = _clean(key)
    svc.clear_cache(key)
    message = f"Cache cleared for key: {key}" if key else "All cache cleared"
    return ok(None, message)


@router.get("/cache/stats")
def cache_stats(request: Request, user: User = Depends(current_user)):
    return ok(_get_products_service(request).get_cache_stats(), "Cache statistics retrieved")


@router.get("/{product_id}")
def get_product(product_id: str, request: Request):
    product = _get_products_service(request).get_product(product_id)
    if not product:
        return fail("Product not found", 404)
    return ok(product, "Product retrieved successfully")


@router.get("/{product_id}/stats")
def get_product_stats(product_id: str, request: Request, period: int = 30):
    if period < 1 or period > MAX_STATS_PERIOD:
        return fail("Period must be between 1 and 365 days")
    stats = _get_products_service(request).get_product_stats(product_id, period)
    return ok(stats, f"Retrieved {len(stats)} price records")


@router.get("/{product_id}/monitoring-status")
def monitoring_status(product_id: str, request: Request, user: User = Depends(current_user)):
    is_monitoring = _get_products_service(request).is_user_monitoring(user.id, product_id)
    return ok({"isMonitoring": is_monitoring})


@router.post("/{product_id}/monitor")
def monitor_product(
    product_id: str,
    request: Request,
    payload: Optional[dict[str, Any]] = Body(None),
    user: User = Depends(current_user),
):
    desired_price = (payload or {}).get("desired_price")
    if desired_price is not None:
        if isinstance(desired_price, bool) or not isinstance(desired_price, (int, float)):
            return fail("desired_price must be a number")
        if desired_price < 0:
            return fail("desired_price must be greater than or equal to 0")
        desired_price = float(desired_price)
    try:
        data = _get_products_service(request).monitor_product(user.id, product_id, desired_price)
    except ProductsError as exc:
        return error_response(exc)
    return ok(data, "Produto adicionado ao monitoramento", status_code=201)


@router.delete("/{product_id}/monitor")
def unmonitor_product(product_id: str, request: Request, user: User = Depends(current_user)):
    _get_products_service(request).unmonitor_product(user.id, product_id)
    return ok(None, "Produto removido do monitoramento")
