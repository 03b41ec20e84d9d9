"""Identifier and one-time code generators."""

from __future__ import annotations

import secrets
import string
import uuid

from promo_api.domain.constants import ActionType, LINK_TOKEN_LENGTH

_LINK_ALPHABET = string.ascii_uppercase + string.digits

_ACTION_PREFIX = {
    ActionType.ADD_PRODUCT: "add",
    ActionType.CHECK_PRODUCT: "check",
    ActionType.NOTIFY_PRICE: "notify",
    ActionType.LINK_ACCOUNTS: "link",
}


def new_id() -> str:
    return str(uuid.uuid4())


def new_action_id(action_type: ActionType) -> str:
    return f"{_ACTION_PREFIX[action_type]}-{uuid.uuid4().hex}"


def new_link_token() -> str:
    return "".join(secrets.choice(_LINK_ALPHABET) for _ in range(LINK_TOKEN_LENGTH))
