from __future__ import annotations

from cif_loader.infra.store.handlers.table_handler import TableHandler
from cif_loader.infra.store.sqlite_engine import SqliteEngine
from cif_loader.infra.store.table_spec import TableSpec

SCHEMA_VERSION = 1


def ensure_base_schema(engine: SqliteEngine) -> int:
    """
    Назначение:
        Создать служебную таблицу meta и зафиксировать версию схемы.
    """
    _create_meta(engine)
    current_version = get_schema_version(engine) or 0
    if current_version < SCHEMA_VERSION:
        _set_schema_version(engine, SCHEMA_VERSION)
        return SCHEMA_VERSION
    return current_version


def ensure_store_ready(engine: SqliteEngine, table_specs: list[TableSpec]) -> int:
    """
    Назначение:
        Инициализирует базовую схему и таблицы наборов данных.
    """
    with engine.transaction():
        version = ensure_base_schema(engine)
        for spec in table_specs:
            TableHandler(spec).ensure_schema(engine)
    return version


def _create_meta(engine: SqliteEngine) -> None:
    engine.execute(
        """
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT
        )
        """
    )


def get_schema_version(engine: SqliteEngine) -> int | None:
    row = engine.fetchone("SELECT value FROM meta WHERE key='schema_version'")
    if row is None:
        return None
    try:
        return int(row[0])
    except (TypeError, ValueError):
        return None


def _set_schema_version(engine: SqliteEngine, version: int) -> None:
    engine.execute(
        """
        INSERT INTO meta(key, value)
        VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        ("schema_version", str(version)),
    )
