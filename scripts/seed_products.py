#!/usr/bin/env python3
"""
Carregar produtos a partir de um arquivo JSON (lista de objetos).

Cada objeto precisa de "id" (ASIN), "title", "price", "full_price" e "url";
os demais campos do Product sao opcionais. Produtos existentes sao atualizados
e mudancas de preco geram historico em product_stats.

Uso:
  python scripts/seed_products.py --file produtos.json [--create-tables]
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from promo_api.db.create_tables import create_all
from promo_api.repositories.sql_repository import SQLRepository

REQUIRED_FIELDS = ("id", "title", "price", "full_price", "url")


def load_products(path: Path) -> list[dict]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"JSON invalido em {path}: {exc}") from exc
    if not isinstance(data, list):
        raise SystemExit("O arquivo deve conter uma lista de produtos")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise SystemExit(f"Item {index} nao e um objeto")
        missing = [field for field in REQUIRED_FIELDS if item.get(field) in (None, "")]
        if missing:
            raise SystemExit(f"Item {index} sem campos obrigatorios: {', '.join(missing)}")
    return data


def main() -> None:
    ap = argparse.ArgumentParser(description="Carregar produtos no banco")
    ap.add_argument("--file", required=True, help="Arquivo JSON com a lista de produtos")
    ap.add_argument("--create-tables", action="store_true", help="Criar as tabelas antes de importar")
    args = ap.parse_args()

    path = Path(args.file)
    if not path.exists():
        raise SystemExit(f"Arquivo '{path}' nao encontrado")
    products = load_products(path)
    if args.create_tables:
        create_all()

    repo = SQLRepository()
    created = updated = 0
    for item in products:
        product_id = str(item["id"]).strip().upper()
        if repo.get_product(product_id):
            updated += 1
        else:
            created += 1
        data = {key: value for key, value in item.items() if key not in ("id", "created_at", "updated_at")}
        repo.upsert_product(product_id, data)
    print("OK: produtos importados")
    print(f"  Novos: {created}")
    print(f"  Atualizados: {updated}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
