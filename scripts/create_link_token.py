#!/usr/bin/env python3
"""
Gerar um codigo de vinculo (6 caracteres, valido por 5 minutos) para um
usuario do Telegram, como o bot faz com /link.

Uso:
  python scripts/create_link_token.py --telegram-id 123456 [--create-user --username fulano]
"""
from __future__ import annotations

import argparse
import sys

from promo_api.domain.constants import LINK_TOKEN_TTL_SECONDS, UserOrigin
from promo_api.domain.tokens import new_link_token
from promo_api.repositories.sql_repository import SQLRepository


def main() -> None:
    ap = argparse.ArgumentParser(description="Gerar codigo de vinculo Telegram <-> site")
    ap.add_argument("--telegram-id", required=True, help="ID numerico do usuario no Telegram")
    ap.add_argument("--create-user", action="store_true", help="Criar o usuario Telegram se nao existir")
    ap.add_argument("--username", help="Username do Telegram (usado com --create-user)")
    ap.add_argument("--ttl", type=int, default=LINK_TOKEN_TTL_SECONDS, help="Validade em segundos (default: 300)")
    args = ap.parse_args()

    telegram_id = (args.telegram_id or "").strip()
    if not telegram_id.isdigit():
        raise SystemExit("telegram-id deve ser numerico")
    if args.ttl <= 0:
        raise SystemExit("ttl deve ser positivo")

    repo = SQLRepository()
    user = repo.get_user_by_telegram_id(telegram_id)
    if not user:
        if not args.create_user:
            raise SystemExit(f"Usuario Telegram '{telegram_id}' nao existe (use --create-user)")
        user = repo.create_user(
            telegram_id=telegram_id,
            username=(args.username or "").strip() or None,
            enabled=True,
            origin=UserOrigin.TELEGRAM.value,
        )
        print(f"Usuario Telegram criado: {user.id}")

    token = repo.create_link_token(telegram_id, new_link_token(), args.ttl)
    print("OK: codigo gerado")
    print(f"  Codigo: {token.token}")
    print(f"  Expira em: {token.expires_at.isoformat()}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
