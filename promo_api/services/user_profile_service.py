from __future__ import annotations

import logging
from typing import Any

from promo_api.core.errors import ServiceError
from promo_api.repositories.sql_repository import SQLRepository
from promo_api.services.serializers import profile_to_dict

logger = logging.getLogger(__name__)

NICK_MIN_LENGTH = 2
NICK_MAX_LENGTH = 50


class ProfileError(ServiceError):
    status_code = 400


class ProfileNotFoundError(ProfileError):
    status_code = 404


def validate_nick(nick: Any) -> str:
    if not isinstance(nick, str) or not nick.strip():
        raise ProfileError("Nick is required")
    value = nick.strip()
    if len(value) < NICK_MIN_LENGTH:
        raise ProfileError("Nick must be at least 2 characters long")
    if len(value) > NICK_MAX_LENGTH:
        raise ProfileError("Nick must be at most 50 characters long")
    return value


class UserProfileService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def get_profile(self, user_id: str) -> dict:
        profile = self.repository.get_profile(user_id)
        if not profile:
            raise ProfileNotFoundError("User profile not found")
        return profile_to_dict(profile)

    def update_nick(self, user_id: str, nick: Any) -> dict:
        value = validate_nick(nick)
        profile = self.repository.update_profile_nick(user_id, value)
        if not profile:
            raise ProfileNotFoundError("User profile not found")
        logger.info("Profile updated for user %s", user_id)
        return profile_to_dict(profile)
