#!/usr/bin/env python3
"""
Remover notificacoes mais antigas que o periodo de retencao (default 30 dias).

Uso:
  python scripts/cleanup_notifications.py [--days 30]
"""
from __future__ import annotations

import argparse
import sys

from promo_api.domain.constants import NOTIFICATION_RETENTION_DAYS
from promo_api.services.notifications_service import NotificationsService


def main() -> None:
    ap = argparse.ArgumentParser(description="Limpar notificacoes antigas")
    ap.add_argument("--days", type=int, default=NOTIFICATION_RETENTION_DAYS, help="Dias de retencao")
    args = ap.parse_args()
    if args.days < 1:
        raise SystemExit("days deve ser >= 1")

    removed = NotificationsService().delete_old_notifications(args.days)
    print(f"OK: {removed} notificacao(oes) removida(s)")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
