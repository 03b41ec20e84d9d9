"""Amazon product URL validation."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

AMAZON_DOMAINS = (
    "amazon.com",
    "amazon.com.br",
    "amazon.co.uk",
    "amazon.de",
    "amazon.fr",
    "amazon.it",
    "amazon.es",
    "amazon.ca",
    "amazon.mx",
    "amazon.co.jp",
    "amazon.in",
    "amazon.com.au",
)

SHORT_DOMAINS = ("amzn.to", "amzlink.to", "a.co")

_ASIN_RE = re.compile(r"/(?:dp|gp/product|gp/aw/d)/([A-Z0-9]{10})(?:[/?#]|$)", re.IGNORECASE)

MSG_REQUIRED = "URL é obrigatória"
MSG_NOT_AMAZON = "URL não é da Amazon"
MSG_NO_PRODUCT = "URL da Amazon não contém um produto válido"
MSG_VALID = "URL válida"


def _host_matches(host: str, domains: tuple[str, ...]) -> bool:
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def extract_asin(url: str) -> Optional[str]:
    match = _ASIN_RE.search(urlparse(url).path + "/")
    return match.group(1).upper() if match else None


def validate_amazon_url(url: Optional[str]) -> tuple[bool, str]:
    """
    Retorna (valida, mensagem).

    Links curtos (amzn.to etc.) sao aceitos sem inspecionar o caminho, ja que
    o ASIN so aparece depois do redirecionamento.
    """
    value = (url or "").strip() if isinstance(url, str) else ""
    if not value:
        return False, MSG_REQUIRED
    parsed = urlparse(value)
    host = (parsed.hostname or "").lower()
    if parsed.scheme not in {"http", "https"} or not host:
        return False, MSG_NOT_AMAZON
    if _host_matches(host, SHORT_DOMAINS):
        return True, MSG_VALID
    if not _host_matches(host, AMAZON_DOMAINS):
        return False, MSG_NOT_AMAZON
    if not extract_asin(value):
        return False, MSG_NO_PRODUCT
    return True, MSG_VALID
