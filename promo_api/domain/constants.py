"""Enumerations and limits shared by services, repository and scripts."""

from __future__ import annotations

from enum import Enum


class UserOrigin(str, Enum):
    TELEGRAM = "TELEGRAM"
    SITE = "SITE"
    BOTH = "BOTH"


class ActionOrigin(str, Enum):
    TELEGRAM = "TELEGRAM"
    SITE = "SITE"


class ActionType(str, Enum):
    ADD_PRODUCT = "ADD_PRODUCT"
    CHECK_PRODUCT = "CHECK_PRODUCT"
    NOTIFY_PRICE = "NOTIFY_PRICE"
    LINK_ACCOUNTS = "LINK_ACCOUNTS"


class NotificationType(str, Enum):
    PRODUCT_ADDED = "PRODUCT_ADDED"
    PRICE_DROP = "PRICE_DROP"
    ACCOUNT_LINKED = "ACCOUNT_LINKED"


class NotificationStatus(str, Enum):
    UNREAD = "UNREAD"
    READ = "READ"


MAX_NOTIFICATIONS_PER_USER = 100
NOTIFICATION_RETENTION_DAYS = 30

LINK_TOKEN_LENGTH = 6
LINK_TOKEN_TTL_SECONDS = 5 * 60

MAX_URLS_PER_REQUEST = 10
DEFAULT_STORE = "Amazon"
