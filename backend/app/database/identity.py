"""Acesso ao contador de identidade (auto-incremento) por dialeto.

Cada dialeto expoe duas operacoes:

* ``read_next_identity``: o proximo ``id`` que o banco vai gerar, ou ``None``
  quando o contador ainda nao existe.
* ``reset_identity``: ajusta o contador para que o proximo ``id`` gerado seja
  ``last_value + 1``.

Dialetos sem suporte levantam ``NotImplementedError``.
"""
from typing import Optional

from sqlalchemy import text
from sqlalchemy.orm import Session


def _dialect_name(db: Session) -> str:
    return db.get_bind().dialect.name


def _sqlite_read(db: Session, table_name: str) -> Optional[int]:
    row = db.execute(
        text("SELECT seq FROM sqlite_sequence WHERE name = :table_name"),
        {"table_name": table_name},
    ).first()
    if row is None or row[0] is None:
        return None
    return int(row[0]) + 1


def _sqlite_reset(db: Session, table_name: str, last_value: int) -> None:
    result = db.execute(
        text("UPDATE sqlite_sequence SET seq = :last_value WHERE name = :table_name"),
        {"last_value": last_value, "table_name": table_name},
    )
    if not result.rowcount:
        db.execute(
            text("INSERT INTO sqlite_sequence (name, seq) VALUES (:table_name, :last_value)"),
            {"last_value": last_value, "table_name": table_name},
        )


def _postgres_sequence(db: Session, table_name: str) -> str:
    sequence = db.execute(
        text("SELECT pg_get_serial_sequence(:table_name, 'id')"),
        {"table_name": table_name},
    ).scalar()
    if not sequence:
        raise RuntimeError(f"Sequencia de identidade nao encontrada para {table_name}.")
    return str(sequence)


def _postgres_read(db: Session, table_name: str) -> Optional[int]:
    sequence = _postgres_sequence(db, table_name)
    # O nome vem do proprio catalogo do banco.
    row = db.execute(text(f"SELECT last_value, is_called FROM {sequence}")).first()
    if row is None:
        return None
    last_value, is_called = int(row[0]), bool(row[1])
    return last_value + 1 if is_called else last_value


def _postgres_reset(db: Session, table_name: str, last_value: int) -> None:
    sequence = _postgres_sequence(db, table_name)
    if last_value < 1:
        # setval nao aceita 0; com is_called = false o proximo valor e 1.
        db.execute(text("SELECT setval(CAST(:sequence AS regclass), 1, false)"), {"sequence": sequence})
        return
    db.execute(
        text("SELECT setval(CAST(:sequence AS regclass), :last_value, true)"),
        {"sequence": sequence, "last_value": last_value},
    )


def _mssql_read(db: Session, table_name: str) -> Optional[int]:
    value = db.execute(
        text("SELECT IDENT_CURRENT(:table_name)"),
        {"table_name": table_name},
    ).scalar()
    if value is None:
        return None
    return int(value) + 1


def _mssql_reset(db: Session, table_name: str, last_value: int) -> None:
    db.execute(
        text("DBCC CHECKIDENT(:table_name, RESEED, :last_value)"),
        {"table_name": table_name, "last_value": last_value},
    )


IDENTITY_HANDLERS = {
    "sqlite": (_sqlite_read, _sqlite_reset),
    "postgresql": (_postgres_read, _postgres_reset),
    "mssql": (_mssql_read, _mssql_reset),
}


def _handlers(db: Session):
    name = _dialect_name(db)
    if name not in IDENTITY_HANDLERS:
        raise NotImplementedError(f"Dialeto sem suporte para redefinir identidade: {name}")
    return IDENTITY_HANDLERS[name]


def read_next_identity(db: Session, table_name: str) -> Optional[int]:
    reader, _ = _handlers(db)
    return reader(db, table_name)


def reset_identity(db: Session, table_name: str, last_value: int) -> None:
    _, writer = _handlers(db)
    writer(db, table_name, max(int(last_value), 0))
