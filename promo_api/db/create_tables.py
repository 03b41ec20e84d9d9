"""Cria o schema do GibiPromo (``python -m promo_api.db.create_tables``)."""
from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from promo_api.db import models  # noqa: F401  registra as tabelas no metadata
from promo_api.db.session import Base, get_engine


def create_all() -> list[str]:
    """Create missing tables and return the names of the ones just created."""
    engine = get_engine()
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    return [name for name in Base.metadata.tables if name not in existing]


if __name__ == "__main__":
    try:
        created = create_all()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Falha ao criar tabelas: {exc}") from exc
    if created:
        print(f"Tabelas criadas: {', '.join(sorted(created))}")
    else:
        print("Schema ja estava atualizado; nenhuma tabela criada.")
