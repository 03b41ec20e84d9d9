"""Price helpers shared by the promotions pipeline and the repository."""

from __future__ import annotations

from typing import Optional


def reference_price(full_price: Optional[float], old_price: Optional[float]) -> float:
    return max(full_price or 0.0, old_price or 0.0)


def is_promotion(price: Optional[float], full_price: Optional[float], old_price: Optional[float]) -> bool:
    if price is None:
        return False
    return price < reference_price(full_price, old_price)


def discount_percentage(price: Optional[float], full_price: Optional[float], old_price: Optional[float]) -> float:
    reference = reference_price(full_price, old_price)
    if price is None or reference <= 0 or price >= reference:
        return 0.0
    return round((reference - price) / reference * 100, 2)


def percentage_change(old: Optional[float], new: float) -> Optional[float]:
    if not old:
        return None
    return round((new - old) / old * 100, 2)
