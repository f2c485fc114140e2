from __future__ import annotations

from contextlib import contextmanager

from cif_loader.domain.ports.timetable_repository import StoreMeta


class FakeTimetableRepository:
    """In-memory репозиторий с журналом вызовов."""

    def __init__(self, rows: dict[str, list[dict]] | None = None):
        self.rows: dict[str, list[dict]] = {"tiplocs": [], "associations": []}
        self.meta: dict[str, str] = {}
        self.calls: list[tuple] = []
        self._next_id = 1
        for dataset, entities in (rows or {}).items():
            self._insert(dataset, entities)

    def _insert(self, dataset: str, entities) -> None:
        for entity in entities:
            stored = dict(entity)
            stored["id"] = self._next_id
            self._next_id += 1
            self.rows[dataset].append(stored)

    @contextmanager
    def transaction(self):
        self.calls.append(("transaction",))
        yield

    def find_one(self, dataset, filters):
        self.calls.append(("find_one", dataset, dict(filters)))
        for row in self.rows[dataset]:
            if all(row.get(key) == value for key, value in filters.items()):
                return dict(row)
        return None

    def save(self, dataset, entity):
        self.calls.append(("save", dataset, dict(entity)))
        for idx, row in enumerate(self.rows[dataset]):
            if row["id"] == entity["id"]:
                self.rows[dataset][idx] = dict(entity)
                return
        raise KeyError(entity["id"])

    def delete(self, dataset, entity):
        self.calls.append(("delete", dataset, entity["id"]))
        self.rows[dataset] = [row for row in self.rows[dataset] if row["id"] != entity["id"]]

    def bulk_insert(self, dataset, entities):
        self.calls.append(("bulk_insert", dataset, len(entities)))
        self._insert(dataset, entities)
        return len(entities)

    def count(self, dataset):
        return len(self.rows[dataset])

    def clear(self, dataset):
        self.rows[dataset] = []

    def list_datasets(self):
        return list(self.rows.keys())

    def get_meta(self, dataset=None):
        if dataset is None:
            return StoreMeta(dict(self.meta))
        prefix = f"{dataset}."
        return StoreMeta({k[len(prefix):]: v for k, v in self.meta.items() if k.startswith(prefix)})

    def set_meta(self, dataset, key, value):
        full_key = key if dataset is None else f"{dataset}.{key}"
        if value is None:
            self.meta.pop(full_key, None)
        else:
            self.meta[full_key] = value

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]
