from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ContextManager, Protocol, Sequence


@dataclass(frozen=True)
class StoreMeta:
    """
    Назначение:
        Контейнер метаданных хранилища.
    """

    values: dict[str, str | None]


class TimetableRepositoryProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт доступа к хранилищу расписаний (dataset-agnostic).
    Взаимодействия:
        Используется процессором транзакций CIF и usecases import/db-status/db-clear.
    Контракт:
        - Сущность - dict с полями набора данных и целочисленным id хранилища.
        - find_one возвращает None, если запись не найдена (не исключение).
        - save/delete адресуют запись по id.
    """

    def transaction(self) -> ContextManager[None]: ...

    def find_one(self, dataset: str, filters: dict[str, Any]) -> dict | None: ...
    def save(self, dataset: str, entity: dict) -> None: ...
    def delete(self, dataset: str, entity: dict) -> None: ...
    def bulk_insert(self, dataset: str, entities: Sequence[dict]) -> int: ...

    def count(self, dataset: str) -> int: ...
    def clear(self, dataset: str) -> None: ...
    def list_datasets(self) -> list[str]: ...

    def get_meta(self, dataset: str | None = None) -> StoreMeta: ...
    def set_meta(self, dataset: str | None, key: str, value: str | None) -> None: ...
