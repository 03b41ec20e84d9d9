"""Convert ORM rows into the JSON shapes returned by the API."""
from __future__ import annotations

from typing import Any, Optional

from promo_api.core.utils import isoformat_utc
from promo_api.db.models import (
    Notification,
    Product,
    ProductStats,
    User,
    UserPreferences,
    UserProfile,
)
from promo_api.domain.products import discount_percentage


def user_summary(user: User) -> dict[str, Any]:
    return {"id": user.id, "email": user.email, "enabled": bool(user.enabled)}


def product_to_dict(product: Optional[Product]) -> Optional[dict[str, Any]]:
    if product is None:
        return None
    return {
        "id": product.id,
        "offer_id": product.offer_id,
        "title": product.title,
        "full_price": product.full_price,
        "price": product.price,
        "old_price": product.old_price,
        "lowest_price": product.lowest_price,
        "discount_percentage": discount_percentage(product.price, product.full_price, product.old_price),
        "in_stock": bool(product.in_stock),
        "url": product.url,
        "image": product.image,
        "preorder": bool(product.preorder),
        "category": product.category,
        "format": product.format,
        "genre": product.genre,
        "publisher": product.publisher,
        "store": product.store,
        "contributors": list(product.contributors or []),
        "created_at": isoformat_utc(product.created_at),
        "updated_at": isoformat_utc(product.updated_at),
    }


def stats_to_dict(stats: ProductStats) -> dict[str, Any]:
    return {
        "id": stats.id,
        "product_id": stats.product_id,
        "price": stats.price,
        "old_price": stats.old_price,
        "percentage_change": stats.percentage_change,
        "created_at": isoformat_utc(stats.created_at),
    }


def notification_to_dict(notification: Notification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "status": notification.status,
        "metadata": notification.meta,
        "sent_via": notification.sent_via,
        "created_at": isoformat_utc(notification.created_at),
        "read_at": isoformat_utc(notification.read_at),
    }


def profile_to_dict(profile: UserProfile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "user_id": profile.user_id,
        "nick": profile.nick,
        "created_at": isoformat_utc(profile.created_at),
        "updated_at": isoformat_utc(profile.updated_at),
    }


def preferences_to_dict(prefs: UserPreferences) -> dict[str, Any]:
    return {
        "id": prefs.id,
        "user_id": prefs.user_id,
        "monitor_preorders": bool(prefs.monitor_preorders),
        "monitor_coupons": bool(prefs.monitor_coupons),
        "created_at": isoformat_utc(prefs.created_at),
        "updated_at": isoformat_utc(prefs.updated_at),
    }
