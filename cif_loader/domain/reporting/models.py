from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ReportMeta:
    """
    Назначение:
        Универсальные метаданные запуска команды.
    """

    run_id: str
    command: str
    started_at: str
    finished_at: str | None = None
    duration_ms: int | None = None
    cif_path: str | None = None
    lines_read: int | None = None


@dataclass
class ReportSummary:
    """
    Назначение:
        Счётчики выполнения: операции по категориям и записи без обработки.
    """

    ops: dict[str, dict[str, int]] = field(default_factory=dict)
    unsupported_records: dict[str, int] = field(default_factory=dict)
    record_counts: dict[str, int] = field(default_factory=dict)
    errors_total: int = 0


@dataclass(frozen=True)
class ReportDiagnostic:
    """
    Назначение:
        Диагностика сбоя: код, строка файла, тип записи и поле.
    """

    severity: str
    category: str
    code: str
    message: str
    line_no: int | None = None
    record_identity: str | None = None
    field: str | None = None


@dataclass
class ReportEnvelope:
    """
    Назначение:
        Корневой объект отчёта.
    """

    status: str
    meta: ReportMeta
    summary: ReportSummary
    diagnostics: list[ReportDiagnostic]
    context: dict[str, Any] = field(default_factory=dict)
