"""Notification inbox for site users (list, count, read, delete)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from promo_api.core.errors import ServiceError
from promo_api.core.utils import utcnow
from promo_api.domain.constants import NOTIFICATION_RETENTION_DAYS, NotificationStatus
from promo_api.repositories.sql_repository import InvalidCursorError, SQLRepository
from promo_api.services.serializers import notification_to_dict

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class NotificationError(ServiceError):
    status_code = 400


class NotificationNotFoundError(NotificationError):
    status_code = 404


class NotificationForbiddenError(NotificationError):
    status_code = 403


@dataclass
class NotificationPage:
    items: list[dict]
    last_key: Optional[str]
    has_more: bool

    def to_dict(self) -> dict:
        return {"items": self.items, "lastKey": self.last_key, "hasMore": self.has_more}


class NotificationsService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def _require_user(self, user_id: str) -> None:
        if not self.repository.get_user(user_id):
            raise NotificationNotFoundError("Usuário não encontrado")

    def _owned(self, user_id: str, notification_id: str, action: str):
        notification = self.repository.get_notification(notification_id)
        if not notification:
            raise NotificationNotFoundError("Notificação não encontrada")
        if notification.user_id != user_id:
            logger.warning("User %s tried to %s notification %s", user_id, action, notification_id)
            raise NotificationForbiddenError(f"Você não tem permissão para {action} esta notificação")
        return notification

    def get_user_notifications(
        self,
        user_id: str,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        last_key: Optional[str] = None,
        status: Optional[NotificationStatus] = None,
    ) -> NotificationPage:
        self._require_user(user_id)
        try:
            rows, has_more = self.repository.list_notifications(
                user_id,
                limit=limit or DEFAULT_PAGE_SIZE,
                status=status.value if status else None,
                after_id=last_key,
            )
        except InvalidCursorError as exc:
            raise NotificationError("Invalid lastKey") from exc
        items = [notification_to_dict(n) for n in rows]
        next_key = rows[-1].id if rows and has_more else None
        return NotificationPage(items=items, last_key=next_key, has_more=has_more)

    def get_unread_count(self, user_id: str) -> int:
        self._require_user(user_id)
        return self.repository.count_unread_notifications(user_id)

    def get_notification(self, user_id: str, notification_id: str) -> dict:
        return notification_to_dict(self._owned(user_id, notification_id, "acessar"))

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        self._owned(user_id, notification_id, "acessar")
        self.repository.mark_notification_read(notification_id)
        logger.info("Notification %s marked as read", notification_id)

    def mark_all_as_read(self, user_id: str) -> int:
        self._require_user(user_id)
        count = self.repository.mark_all_notifications_read(user_id)
        logger.info("Marked %s notifications as read for user %s", count, user_id)
        return count

    def delete_notification(self, user_id: str, notification_id: str) -> None:
        self._owned(user_id, notification_id, "deletar")
        self.repository.delete_notification(notification_id)
        logger.info("Notification %s deleted", notification_id)

    def delete_old_notifications(self, retention_days: int = NOTIFICATION_RETENTION_DAYS) -> int:
        cutoff = utcnow() - timedelta(days=retention_days)
        removed = self.repository.delete_old_notifications(cutoff)
        logger.info("Removed %s notifications older than %s days", removed, retention_days)
        return removed
