from __future__ import annotations

import logging
from typing import Any, Mapping

from promo_api.core.errors import ServiceError
from promo_api.repositories.sql_repository import SQLRepository
from promo_api.services.serializers import preferences_to_dict

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = ("monitor_preorders", "monitor_coupons")


class PreferencesError(ServiceError):
    status_code = 400


class PreferencesNotFoundError(PreferencesError):
    status_code = 404


def extract_preferences(payload: Mapping[str, Any]) -> dict[str, bool]:
    """Keep only known fields; every supplied one must be a real boolean."""
    values: dict[str, bool] = {}
    for name in PREFERENCE_FIELDS:
        if name not in payload:
            continue
        value = payload[name]
        if not isinstance(value, bool):
            raise PreferencesError(f"{name} must be a boolean value")
        values[name] = value
    if not values:
        raise PreferencesError("At least one preference field must be provided")
    return values


class UserPreferencesService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def get_preferences(self, user_id: str) -> dict:
        prefs = self.repository.get_preferences(user_id)
        if not prefs:
            raise PreferencesNotFoundError("User preferences not found")
        return preferences_to_dict(prefs)

    def update_preferences(self, user_id: str, payload: Mapping[str, Any]) -> dict:
        values = extract_preferences(payload)
        prefs = self.repository.update_preferences(user_id, values)
        if not prefs:
            raise PreferencesNotFoundError("User preferences not found")
        logger.info("Preferences updated for user %s: %s", user_id, values)
        return preferences_to_dict(prefs)
