"""Queue ADD_PRODUCT actions for Amazon URLs submitted from the site."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from promo_api.core.errors import ServiceError
from promo_api.domain.amazon import validate_amazon_url
from promo_api.domain.constants import ActionOrigin, ActionType
from promo_api.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

ADDED_MESSAGE = "Produto adicionado para análise! Você será notificado quando houver alterações no preço."
ESTIMATED_TIME = "O produto será analisado em até 5 minutos"


class ProductActionError(ServiceError):
    status_code = 400


@dataclass
class AddProductResult:
    action_id: str
    message: str = ADDED_MESSAGE
    estimated_time: str = ESTIMATED_TIME

    def to_dict(self) -> dict:
        return {"action_id": self.action_id, "message": self.message, "estimated_time": self.estimated_time}


@dataclass
class AddMultipleResult:
    success_count: int = 0
    failed_urls: list[str] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed_urls)

    @property
    def message(self) -> str:
        if self.success_count:
            return f"{self.success_count} produto(s) adicionado(s) com sucesso"
        return "Nenhum produto foi adicionado"

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "failed_urls": list(self.failed_urls),
            "message": self.message,
        }


class ProductActionsService:
    def __init__(self) -> None:
        self.repository = SQLRepository()

    def _check_user(self, user_id: str) -> None:
        user = self.repository.get_user(user_id)
        if not user:
            raise ProductActionError("Usuário não encontrado")
        if not user.enabled:
            raise ProductActionError("Sua monitoria está desabilitada. Entre em contato com o suporte.")

    def validate_url(self, url: str) -> tuple[bool, str]:
        return validate_amazon_url(url)

    def add_product(self, user_id: str, url: str) -> AddProductResult:
        self._check_user(user_id)
        valid, message = validate_amazon_url(url)
        if not valid:
            raise ProductActionError(message)
        action = self.repository.create_action(
            ActionType.ADD_PRODUCT,
            url.strip(),
            user_id=user_id,
            origin=ActionOrigin.SITE,
        )
        logger.info("ADD_PRODUCT action %s created for user %s", action.id, user_id)
        return AddProductResult(action_id=action.id)

    def add_multiple_products(self, user_id: str, urls: list[str]) -> AddMultipleResult:
        """Enqueue each URL on its own; rejected URLs end up in ``failed_urls``."""
        result = AddMultipleResult()
        for url in urls:
            try:
                self.add_product(user_id, url)
            except ProductActionError as exc:
                logger.warning("Rejected URL %s for user %s: %s", url, user_id, exc.message)
                result.failed_urls.append(url)
                continue
            result.success_count += 1
        logger.info(
            "add-multiple for user %s: %s ok, %s failed",
            user_id,
            result.success_count,
            result.failed_count,
        )
        return result
