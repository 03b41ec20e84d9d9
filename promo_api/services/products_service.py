"""
Product catalogue queries: listing, search, promotions, price history and
per-user monitoring.

Every read goes through the same pipeline: scan up to ``products_scan_limit``
products from the repository (most recently updated first), filter and sort
in memory, paginate, and keep the result in a TTL cache keyed by the query.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.exc import IntegrityError

from promo_api.core.cache import TTLCache
from promo_api.core.config import get_settings
from promo_api.core.errors import ServiceError
from promo_api.core.utils import as_utc, utcnow
from promo_api.db.models import Product
from promo_api.domain.products import discount_percentage, is_promotion
from promo_api.repositories.sql_repository import SQLRepository
from promo_api.services.serializers import product_to_dict, stats_to_dict

logger = logging.getLogger(__name__)

PROMOTION_SORTS = ("discount", "price-low", "price-high", "name", "updated", "created")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MISS = object()


class ProductsError(ServiceError):
    status_code = 400


class ProductNotFoundError(ProductsError):
    status_code = 404


class AlreadyMonitoringError(ProductsError):
    status_code = 409


@dataclass
class SearchFilters:
    query: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    category: Optional[str] = None
    format: Optional[str] = None
    genre: Optional[str] = None
    publisher: Optional[str] = None
    available: Optional[bool] = None

    def cache_key(self) -> str:
        return json.dumps({k: v for k, v in asdict(self).items() if v is not None}, sort_keys=True)


@dataclass
class PromotionFilters:
    query: Optional[str] = None
    category: Optional[str] = None
    publisher: Optional[str] = None
    genre: Optional[str] = None
    format: Optional[str] = None
    contributors: list[str] = field(default_factory=list)
    preorder: Optional[bool] = None
    in_stock: Optional[bool] = None
    only_my_products: bool = False
    sort_by: str = "discount"

    def cache_key(self) -> str:
        # onlyMyProducts queries never reach the cache
        values = {
            k: v for k, v in asdict(self).items() if v is not None and v != [] and k != "only_my_products"
        }
        return json.dumps(values, sort_keys=True)


def _ts(value: Optional[datetime]) -> float:
    return (as_utc(value) or _EPOCH).timestamp()


def _same(value: Optional[str], expected: str) -> bool:
    return (value or "").lower() == expected.lower()


def relevance_score(title: str, query: str) -> int:
    title_lower = (title or "").lower()
    query_lower = query.lower()
    score = 0
    if title_lower.startswith(query_lower):
        score += 100
    if query_lower in title_lower:
        score += 50
    for word in query_lower.split(" "):
        if word in title_lower:
            score += 10
    return score


def sort_by_relevance(products: list[Product], query: Optional[str]) -> list[Product]:
    if not query:
        return sorted(products, key=lambda p: _ts(p.updated_at), reverse=True)
    return sorted(products, key=lambda p: (-relevance_score(p.title, query), -_ts(p.updated_at)))


def paginate(items: list[Any], page: int, limit: int) -> dict[str, Any]:
    total = len(items)
    total_pages = math.ceil(total / limit) if limit else 0
    start = (page - 1) * limit
    return {
        "data": items[start : start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
    }


def _discount(product: Product) -> float:
    return discount_percentage(product.price, product.full_price, product.old_price)


_PROMOTION_SORT_KEYS = {
    "discount": lambda p: (-_discount(p), -_ts(p.updated_at)),
    "price-low": lambda p: (p.price or 0.0, -_ts(p.updated_at)),
    "price-high": lambda p: (-(p.price or 0.0), -_ts(p.updated_at)),
    "name": lambda p: ((p.title or "").casefold(), p.id),
    "updated": lambda p: -_ts(p.updated_at),
    "created": lambda p: -_ts(p.created_at),
}


class ProductsService:
    """Cached read pipeline over the products table plus monitoring writes."""

    def __init__(self, cache_ttl_seconds: int | None = None, scan_limit: int | None = None) -> None:
        settings = get_settings()
        self.repository = SQLRepository()
        self.scan_limit = scan_limit or settings.products_scan_limit
        self.cache = TTLCache(cache_ttl_seconds if cache_ttl_seconds is not None else settings.products_cache_ttl_seconds)

    # ------------------------------ helpers ------------------------------
    def _cached(self, key: str, build):
        cached = self.cache.get(key, _MISS)
        if cached is not _MISS:
            logger.debug("Cache hit for %s", key)
            return cached
        value = build()
        self.cache.set(key, value)
        return value

    def _scan(self) -> list[Product]:
        return self.repository.list_products(self.scan_limit)

    def _serialize(self, products: Iterable[Product]) -> list[dict[str, Any]]:
        return [product_to_dict(p) for p in products]

    @staticmethod
    def _apply_search_filters(products: list[Product], filters: SearchFilters) -> list[Product]:
        result = products
        if filters.query:
            q = filters.query.lower()
            result = [p for p in result if q in (p.title or "").lower()]
        if filters.min_price is not None:
            result = [p for p in result if (p.price or 0) >= filters.min_price]
        if filters.max_price is not None:
            result = [p for p in result if (p.price or 0) <= filters.max_price]
        for attr in ("category", "format", "genre", "publisher"):
            expected = getattr(filters, attr)
            if expected:
                result = [p for p in result if _same(getattr(p, attr), expected)]
        if filters.available is not None:
            result = [p for p in result if bool(p.in_stock) == filters.available]
        return result

    @staticmethod
    def _apply_promotion_filters(
        products: list[Product],
        filters: PromotionFilters,
        monitored_ids: Optional[set[str]] = None,
    ) -> list[Product]:
        result = [p for p in products if is_promotion(p.price, p.full_price, p.old_price)]
        if filters.query:
            q = filters.query.lower()
            result = [
                p
                for p in result
                if q in (p.title or "").lower() or any(q in (c or "").lower() for c in (p.contributors or []))
            ]
        for attr in ("category", "publisher", "genre", "format"):
            expected = getattr(filters, attr)
            if expected:
                result = [p for p in result if _same(getattr(p, attr), expected)]
        if filters.contributors:
            wanted = {c.strip().lower() for c in filters.contributors if c.strip()}
            result = [p for p in result if wanted & {(c or "").lower() for c in (p.contributors or [])}]
        if filters.preorder is not None:
            result = [p for p in result if bool(p.preorder) == filters.preorder]
        if filters.in_stock is not None:
            result = [p for p in result if bool(p.in_stock) == filters.in_stock]
        if monitored_ids is not None:
            result = [p for p in result if p.id in monitored_ids]
        return result

    # ------------------------------ listing ------------------------------
    def list_products(self, page: int, limit: int) -> dict[str, Any]:
        def build():
            logger.info("Listing products page=%s limit=%s", page, limit)
            products = sort_by_relevance(self._scan(), None)
            result = paginate(products, page, limit)
            result["data"] = self._serialize(result["data"])
            return result

        return self._cached(f"list:{page}:{limit}", build)

    def search_products(self, filters: SearchFilters, page: int, limit: int) -> dict[str, Any]:
        def build():
            logger.info("Searching products filters=%s page=%s limit=%s", filters.cache_key(), page, limit)
            products = self._apply_search_filters(self._scan(), filters)
            result = paginate(sort_by_relevance(products, filters.query), page, limit)
            result["data"] = self._serialize(result["data"])
            return result

        return self._cached(f"search:{filters.cache_key()}:{page}:{limit}", build)

    def get_product(self, product_id: str) -> Optional[dict[str, Any]]:
        # produtos inexistentes tambem ficam em cache (valor None)
        return self._cached(f"product:{product_id}", lambda: product_to_dict(self.repository.get_product(product_id)))

    # ------------------------------ promotions ------------------------------
    def get_promotions(
        self,
        filters: PromotionFilters,
        page: int,
        limit: int,
        user_id: Optional[str] = None,
    ) -> dict[str, Any]:
        if filters.sort_by not in PROMOTION_SORTS:
            raise ProductsError(f"sortBy must be one of: {', '.join(PROMOTION_SORTS)}")

        def build(monitored_ids: Optional[set[str]] = None):
            products = self._apply_promotion_filters(self._scan(), filters, monitored_ids)
            products = sorted(products, key=_PROMOTION_SORT_KEYS[filters.sort_by])
            result = paginate(products, page, limit)
            result["data"] = self._serialize(result["data"])
            return result

        if filters.only_my_products:
            if not user_id:
                raise ProductsError("Authentication required to filter by your products", 401)
            return build(self.repository.list_monitored_product_ids(user_id))
        return self._cached(f"promotions:{filters.cache_key()}:{page}:{limit}", build)

    def get_latest_promotions(self, limit: int) -> list[dict[str, Any]]:
        def build():
            products = self._apply_promotion_filters(self._scan(), PromotionFilters(in_stock=True))
            products = sorted(products, key=_PROMOTION_SORT_KEYS["updated"])
            return self._serialize(products[:limit])

        return self._cached(f"latest:{limit}", build)

    def get_filter_options(self) -> dict[str, list[str]]:
        def build():
            categories, publishers, genres, formats, contributors = set(), set(), set(), set(), set()
            for product in self._scan():
                for bucket, value in (
                    (categories, product.category),
                    (publishers, product.publisher),
                    (genres, product.genre),
                    (formats, product.format),
                ):
                    if value and value.strip():
                        bucket.add(value.strip())
                contributors.update(c.strip() for c in (product.contributors or []) if c and c.strip())
            return {
                "categories": sorted(categories, key=str.casefold),
                "publishers": sorted(publishers, key=str.casefold),
                "genres": sorted(genres, key=str.casefold),
                "formats": sorted(formats, key=str.casefold),
                "contributors": sorted(contributors, key=str.casefold),
            }

        return self._cached("filter-options", build)

    # ------------------------------ price history ------------------------------
    def get_product_stats(self, product_id: str, period_days: int = 30) -> list[dict[str, Any]]:
        def build():
            end = utcnow()
            start = end - timedelta(days=period_days)
            return [stats_to_dict(s) for s in self.repository.find_product_stats(product_id, start, end)]

        return self._cached(f"stats:{product_id}:{period_days}", build)

    # ------------------------------ monitoring ------------------------------
    def is_user_monitoring(self, user_id: str, product_id: str) -> bool:
        return self.repository.get_product_user(user_id, product_id) is not None

    def monitor_product(self, user_id: str, product_id: str, desired_price: Optional[float] = None) -> dict[str, Any]:
        if not self.repository.get_product(product_id):
            raise ProductNotFoundError("Produto não encontrado")
        if self.is_user_monitoring(user_id, product_id):
            raise AlreadyMonitoringError("Você já está monitorando este produto")
        try:
            link = self.repository.create_product_user(user_id, product_id, desired_price)
        except IntegrityError as exc:
            # vinculo criado por uma requisicao concorrente
            raise AlreadyMonitoringError("Você já está monitorando este produto") from exc
        logger.info("User %s started monitoring product %s", user_id, product_id)
        return {"product_id": link.product_id, "desired_price": link.desired_price}

    def unmonitor_product(self, user_id: str, product_id: str) -> bool:
        removed = self.repository.delete_product_user(user_id, product_id)
        if removed:
            logger.info("User %s stopped monitoring product %s", user_id, product_id)
        return removed

    # ------------------------------ cache ------------------------------
    def clear_cache(self, key: Optional[str] = None) -> None:
        if key:
            self.cache.delete(key)
            logger.info("Cache cleared for key %s", key)
        else:
            self.cache.clear()
            logger.info("All cache cleared")

    def get_cache_stats(self) -> dict[str, Any]:
        return self.cache.stats()
