from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from cif_loader.domain.cif.header import HeaderMetadata
from cif_loader.domain.error_codes import ErrorCode


class EntityCategory(str, Enum):
    """
    Назначение:
        Категории сущностей, по которым ведётся статистика транзакций.
    """

    TIPLOC = "tiploc"
    ASSOCIATION = "association"
    SCHEDULE = "schedule"


class Dataset(str, Enum):
    """
    Назначение:
        Наборы данных хранилища (таблицы репозитория).
    """

    TIPLOCS = "tiplocs"
    ASSOCIATIONS = "associations"


@dataclass
class OperationCounts:
    insert: int = 0
    amend: int = 0
    delete: int = 0


@dataclass
class TransactionStats:
    """
    Назначение:
        Счётчики insert/amend/delete по категориям сущностей.
        unsupported - записи, которые классифицированы, но не исполняются
        (расписания), по коду типа записи.
    """

    tiploc: OperationCounts = field(default_factory=OperationCounts)
    association: OperationCounts = field(default_factory=OperationCounts)
    schedule: OperationCounts = field(default_factory=OperationCounts)
    unsupported: dict[str, int] = field(default_factory=dict)

    def counts(self, category: EntityCategory) -> OperationCounts:
        return getattr(self, category.value)

    def add(self, category: EntityCategory, op: str, amount: int = 1) -> None:
        counts = self.counts(category)
        setattr(counts, op, getattr(counts, op) + amount)

    def add_unsupported(self, record_identity: str) -> None:
        self.unsupported[record_identity] = self.unsupported.get(record_identity, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LookupFailure:
    """
    Назначение:
        Структурированная ошибка поиска (tiploc/association не найдены).
        Возвращается вызывающей стороне и прерывает обработку файла.
    """

    code: ErrorCode
    dataset: Dataset
    line_no: int
    record_identity: str
    field: str
    key: dict[str, str | None]
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "dataset": self.dataset.value,
            "line_no": self.line_no,
            "record_identity": self.record_identity,
            "field": self.field,
            "key": dict(self.key),
            "message": self.message,
        }


@dataclass
class ImportResult:
    """
    Назначение:
        Итог одного прогона обработки CIF-файла.
    Инварианты/гарантии:
        - ok == True тогда и только тогда, когда error is None.
    """

    stats: TransactionStats
    header: HeaderMetadata | None = None
    lines_read: int = 0
    error: LookupFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def unsupported_records(self) -> dict[str, int]:
        return dict(self.stats.unsupported)
