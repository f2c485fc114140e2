from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from cif_loader.domain.ports.timetable_repository import StoreMeta, TimetableRepositoryProtocol
from cif_loader.infra.store.handlers.table_handler import TableHandler
from cif_loader.infra.store.sqlite_engine import SqliteEngine
from cif_loader.infra.store.table_spec import TableSpec


class SqliteTimetableRepository(TimetableRepositoryProtocol):
    """
    Назначение/ответственность:
        Реализация репозитория расписаний на SQLite.
    """

    def __init__(self, engine: SqliteEngine, table_specs: list[TableSpec]):
        self.engine = engine
        self._handlers = _build_handlers(table_specs)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self.engine.transaction():
            yield

    def find_one(self, dataset: str, filters: dict[str, Any]) -> dict | None:
        return _get_handler(self._handlers, dataset).find_one(self.engine, filters)

    def save(self, dataset: str, entity: dict) -> None:
        _get_handler(self._handlers, dataset).update(self.engine, entity)

    def delete(self, dataset: str, entity: dict) -> None:
        _get_handler(self._handlers, dataset).delete(self.engine, entity)

    def bulk_insert(self, dataset: str, entities: Sequence[dict]) -> int:
        return _get_handler(self._handlers, dataset).insert_many(self.engine, entities)

    def count(self, dataset: str) -> int:
        return _get_handler(self._handlers, dataset).count_total(self.engine)

    def clear(self, dataset: str) -> None:
        _get_handler(self._handlers, dataset).clear(self.engine)

    def list_datasets(self) -> list[str]:
        return list(self._handlers.keys())

    def get_meta(self, dataset: str | None = None) -> StoreMeta:
        if dataset is None:
            rows = self.engine.fetchall("SELECT key, value FROM meta")
            return StoreMeta({row[0]: row[1] for row in rows})
        rows = self.engine.fetchall("SELECT key, value FROM meta WHERE key LIKE ?", (f"{dataset}.%",))
        values: dict[str, str | None] = {}
        for row in rows:
            key = row[0].split(".", 1)[1] if "." in row[0] else row[0]
            values[key] = row[1]
        return StoreMeta(values)

    def set_meta(self, dataset: str | None, key: str, value: str | None) -> None:
        full_key = key if dataset is None else f"{dataset}.{key}"
        if value is None:
            self.engine.execute("DELETE FROM meta WHERE key = ?", (full_key,))
            return
        self.engine.execute(
            """
            INSERT INTO meta(key, value)
            VALUES(?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (full_key, value),
        )


def _build_handlers(table_specs: list[TableSpec]) -> dict[str, TableHandler]:
    handlers: dict[str, TableHandler] = {}
    for spec in table_specs:
        if spec.dataset in handlers:
            raise ValueError(f"Duplicate table spec for dataset: {spec.dataset}")
        handlers[spec.dataset] = TableHandler(spec)
    return handlers


def _get_handler(handlers: dict[str, TableHandler], dataset: str) -> TableHandler:
    if dataset not in handlers:
        raise ValueError(f"Unsupported dataset: {dataset}")
    return handlers[dataset]
