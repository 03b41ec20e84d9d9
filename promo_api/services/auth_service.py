"""
Authentication and identity related use cases.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from promo_api.core.config import DEFAULT_JWT_SECRET, get_settings
from promo_api.core.errors import ServiceError
from promo_api.core.security import TokenError, decode_token, encode_token, hash_password, verify_password
from promo_api.core.utils import isoformat_utc, parse_duration, to_base36
from promo_api.db.models import User
from promo_api.domain.constants import UserOrigin
from promo_api.repositories.sql_repository import SQLRepository
from promo_api.services.serializers import user_summary

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


class AuthError(ServiceError):
    """Base class for authentication-related exceptions."""


class RegistrationError(AuthError):
    status_code = 400


class InvalidCredentialsError(AuthError):
    status_code = 401


class TokenInvalidError(AuthError):
    status_code = 401


@dataclass
class AuthResult:
    token: str
    expires_at: datetime
    user: User

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "expiresAt": isoformat_utc(self.expires_at),
            "user": user_summary(self.user),
        }


def normalize_email(email: Optional[str]) -> str:
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


@dataclass
class AuthService:
    """Handles registration, login and JWT validation."""

    def __post_init__(self):
        self.settings = get_settings()
        self.repository = SQLRepository()
        if self.settings.app_env == "prod" and self.settings.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET is not set; using the development secret in production")

    # -------------------------------------- helpers --------------------------------------
    def _username_from_email(self, email: str) -> str:
        local = email.split("@", 1)[0]
        sanitized = re.sub(r"[^a-zA-Z0-9]", "_", local)
        return f"web_{sanitized}_{to_base36(int(time.time() * 1000))}"

    def _issue(self, user: User) -> AuthResult:
        token, expires_at = encode_token(
            {"userId": user.id, "email": user.email},
            self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
            expires_in=parse_duration(self.settings.jwt_expires_in),
        )
        return AuthResult(token=token, expires_at=expires_at, user=user)

    # -------------------------------------- registro --------------------------------------
    def register(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        address = normalize_email(email)
        if not address or not password or not isinstance(password, str):
            raise RegistrationError("Email and password are required")
        if not EMAIL_RE.match(address):
            raise RegistrationError("Invalid email format")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError("Password must be at least 6 characters long")
        if self.repository.get_user_by_email(address):
            raise RegistrationError("Email already registered")

        try:
            user = self.repository.create_user(
                email=address,
                password_hash=hash_password(password),
                username=self._username_from_email(address),
                enabled=True,
                origin=UserOrigin.SITE.value,
                is_linking=False,
            )
        except IntegrityError as exc:
            raise RegistrationError("Email already registered") from exc
        self.repository.create_preferences(user.id, monitor_preorders=False, monitor_coupons=False)
        self.repository.create_profile(user.id, nick=address.split("@", 1)[0][:50])
        logger.info("User registered: %s", user.email)
        return self._issue(user)

    # -------------------------------------- login --------------------------------------
    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        address = normalize_email(email)
        if not address or not password or not isinstance(password, str):
            raise RegistrationError("Email and password are required")
        user = self.repository.get_user_by_email(address)
        if not user:
            raise InvalidCredentialsError("Invalid credentials")
        if not user.password_hash:
            raise InvalidCredentialsError("User does not have a password set")
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        if not user.enabled:
            raise InvalidCredentialsError("User account is disabled")
        logger.info("User logged in: %s", user.email)
        return self._issue(user)

    # -------------------------------------- tokens --------------------------------------
    def validate_token(self, token: str) -> User:
        """Decode ``token`` and return the enabled user it belongs to."""
        try:
            payload = decode_token(token, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)
        except TokenError as exc:
            raise TokenInvalidError(exc.message) from exc
        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise TokenInvalidError("Invalid token")
        user = self.repository.get_user(user_id)
        if not user:
            raise TokenInvalidError("User not found")
        if not user.enabled:
            raise TokenInvalidError("User account is disabled")
        return user
