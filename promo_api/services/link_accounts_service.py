"""
Linking a site account with a Telegram account.

The bot hands the Telegram user a six character code; the site user submits
it here. On success the code is burned, both users are flagged as linking and
a LINK_ACCOUNTS action is queued for the scheduler, which performs the merge.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from promo_api.core.errors import ServiceError
from promo_api.core.utils import as_utc, utcnow
from promo_api.domain.constants import LINK_TOKEN_LENGTH, ActionOrigin, ActionType, UserOrigin
from promo_api.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

LINK_STARTED_MESSAGE = "Vínculo iniciado! Aguarde alguns instantes enquanto processamos."


class LinkAccountsError(ServiceError):
    status_code = 400


@dataclass
class LinkStatus:
    is_linked: bool
    is_linking: bool
    telegram_username: Optional[str]

    def to_dict(self) -> dict:
        return {
            "isLinked": self.is_linked,
            "isLinking": self.is_linking,
            "telegramUsername": self.telegram_username,
        }


def normalize_link_token(token: Any) -> str:
    if not isinstance(token, str) or len(token.strip()) != LINK_TOKEN_LENGTH:
        raise LinkAccountsError("Código inválido")
    return token.strip().upper()


class LinkAccountsService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def link_telegram(self, site_user_id: str, token: Any) -> str:
        code = normalize_link_token(token)
        site_user = self.repository.get_user(site_user_id)
        if not site_user:
            raise LinkAccountsError("Usuário não encontrado")
        if site_user.origin == UserOrigin.BOTH.value:
            raise LinkAccountsError("Sua conta já está vinculada ao Telegram")
        if site_user.is_linking:
            raise LinkAccountsError("Processo de vínculo já em andamento")

        link_token = self.repository.get_link_token(code)
        if not link_token:
            raise LinkAccountsError("Código inválido")
        if link_token.used:
            raise LinkAccountsError("Código já foi usado")
        if as_utc(link_token.expires_at) < utcnow():
            raise LinkAccountsError("Código expirado. Solicite um novo no bot")

        telegram_user = self.repository.get_user_by_telegram_id(link_token.telegram_user_id)
        if not telegram_user:
            raise LinkAccountsError("Usuário do Telegram não encontrado")
        if telegram_user.id == site_user.id:
            raise LinkAccountsError("Não é possível vincular a mesma conta")

        self.repository.mark_link_token_used(link_token.id)
        self.repository.set_users_linking([site_user.id, telegram_user.id], True)
        action = self.repository.create_action(
            ActionType.LINK_ACCOUNTS,
            link_token.telegram_user_id,
            user_id=site_user.id,
            origin=ActionOrigin.SITE,
        )
        logger.info(
            "Link started site_user=%s telegram_user=%s action=%s",
            site_user.id,
            telegram_user.id,
            action.id,
        )
        return LINK_STARTED_MESSAGE

    def get_link_status(self, site_user_id: str) -> LinkStatus:
        user = self.repository.get_user(site_user_id)
        if not user:
            raise LinkAccountsError("Usuário não encontrado", 404)
        is_linked = user.origin == UserOrigin.BOTH.value
        return LinkStatus(
            is_linked=is_linked,
            is_linking=bool(user.is_linking),
            telegram_username=user.username if is_linked and user.telegram_id else None,
        )
