from __future__ import annotations

from typing import Any, Sequence

from cif_loader.infra.store.sqlite_engine import SqliteEngine
from cif_loader.infra.store.table_spec import ID_COLUMN, ColumnSpec, TableSpec, map_sqlite_type


class TableHandler:
    """
    Назначение/ответственность:
        Универсальный handler таблицы хранилища на основе TableSpec.
    """

    def __init__(self, spec: TableSpec) -> None:
        self.spec = spec
        self.dataset = spec.dataset

    def ensure_schema(self, engine: SqliteEngine) -> None:
        columns_sql = [f"{ID_COLUMN} INTEGER PRIMARY KEY"]
        for column in self.spec.columns:
            not_null = " NOT NULL" if not column.nullable else ""
            columns_sql.append(f"{column.name} {map_sqlite_type(column.type)}{not_null}")

        engine.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.spec.table} (
                {', '.join(columns_sql)}
            )
            """
        )

        for columns in self.spec.unique_indexes:
            index_name = _index_name(self.spec.table, columns, unique=True)
            engine.execute(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {index_name} ON {self.spec.table}({', '.join(columns)})"
            )
        for columns in self.spec.lookup_indexes:
            index_name = _index_name(self.spec.table, columns, unique=False)
            engine.execute(
                f"CREATE INDEX IF NOT EXISTS {index_name} ON {self.spec.table}({', '.join(columns)})"
            )

    def insert_many(self, engine: SqliteEngine, entities: Sequence[dict]) -> int:
        if not entities:
            return 0
        rows = [_extract_values(self.spec.columns, entity, self.dataset) for entity in entities]
        names = self.spec.column_names
        placeholders = ", ".join(f":{name}" for name in names)
        return engine.insert_rows(
            f"INSERT INTO {self.spec.table}({', '.join(names)}) VALUES({placeholders})",
            rows,
        )

    def update(self, engine: SqliteEngine, entity: dict) -> None:
        entity_id = _require_id(entity, self.dataset)
        values = _extract_values(self.spec.columns, entity, self.dataset)
        set_clause = ", ".join(f"{name} = :{name}" for name in values)
        values[ID_COLUMN] = entity_id
        engine.execute(f"UPDATE {self.spec.table} SET {set_clause} WHERE {ID_COLUMN} = :{ID_COLUMN}", values)

    def delete(self, engine: SqliteEngine, entity: dict) -> None:
        entity_id = _require_id(entity, self.dataset)
        engine.execute(f"DELETE FROM {self.spec.table} WHERE {ID_COLUMN} = ?", (entity_id,))

    def find_one(self, engine: SqliteEngine, filters: dict[str, Any]) -> dict | None:
        if not filters:
            raise ValueError("find_one() requires at least one filter")
        known = set(self.spec.column_names) | {ID_COLUMN}
        where_parts: list[str] = []
        params: list[Any] = []
        for key, value in filters.items():
            if key not in known:
                raise ValueError(f"Unknown field '{key}' for dataset '{self.dataset}'")
            if value is None:
                where_parts.append(f"{key} IS NULL")
            else:
                where_parts.append(f"{key} = ?")
                params.append(value)
        row = engine.fetchone(
            f"SELECT * FROM {self.spec.table} WHERE {' AND '.join(where_parts)} ORDER BY {ID_COLUMN} LIMIT 1",
            tuple(params),
        )
        if row is None:
            return None
        return {key: row[key] for key in row.keys()}

    def count_total(self, engine: SqliteEngine) -> int:
        row = engine.fetchone(f"SELECT COUNT(*) FROM {self.spec.table}")
        return int(row[0]) if row else 0

    def clear(self, engine: SqliteEngine) -> None:
        engine.execute(f"DELETE FROM {self.spec.table}")


def _index_name(table: str, columns: tuple[str, ...], *, unique: bool) -> str:
    prefix = "uidx" if unique else "idx"
    return f"{prefix}_{table}_{'_'.join(columns)}"


def _require_id(entity: dict, dataset: str) -> int:
    entity_id = entity.get(ID_COLUMN)
    if entity_id is None:
        raise ValueError(f"Entity without '{ID_COLUMN}' cannot be addressed (dataset={dataset})")
    return int(entity_id)


def _extract_values(columns: tuple[ColumnSpec, ...], entity: dict, dataset: str) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for column in columns:
        value = entity.get(column.name)
        if not column.nullable and (value is None or (isinstance(value, str) and value.strip() == "")):
            raise ValueError(f"Missing required field: {column.name} (dataset={dataset})")
        values[column.name] = value
    return values
