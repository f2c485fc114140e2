from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from cif_loader.domain.reporting.collector import ReportCollector, asdict_report
from cif_loader.infra.sources.cif_file import CIF_ENCODING
from cif_loader.infra.store.db import getDbPath


def createEmptyReport(runId: str, command: str, configSources: list[str]) -> ReportCollector:
    """
    Назначение:
        Создаёт пустой отчёт-скелет.
    """
    collector = ReportCollector(run_id=runId, command=command)
    if configSources:
        collector.set_context("config", {"sources": configSources})
    return collector


def finalizeReport(report: ReportCollector, durationMs: int, logFile: str | None, dbDir: str, reportDir: str) -> None:
    """
    Назначение:
        Финализирует отчёт: время завершения, длительность, пути.

    Поведение:
        - runtime.store_file указывает на файл хранилища, а не на каталог.
        - Если CIF-файл существует, в context.cif_file пишутся его размер,
          время изменения и кодировка чтения.
    """
    report.set_context(
        "runtime",
        {
            "log_file": logFile,
            "store_file": getDbPath(dbDir),
            "report_dir": reportDir,
        },
    )
    cifFile = describeCifFile(report.meta.cif_path)
    if cifFile is not None:
        report.set_context("cif_file", cifFile)
    report.finish(duration_ms=durationMs)


def describeCifFile(cifPath: str | None) -> dict[str, Any] | None:
    if not cifPath:
        return None
    path = Path(cifPath)
    if not path.is_file():
        return None
    stat = path.stat()
    return {
        "path": str(path.resolve()),
        "size_bytes": stat.st_size,
        "modified_at": datetime.fromtimestamp(stat.st_mtime).astimezone().isoformat(),
        "encoding": CIF_ENCODING,
    }


def writeReportJson(report: ReportCollector, reportDir: str, fileBaseName: str) -> str:
    """
    Назначение:
        Записывает report.json на диск.

    Выходные данные:
        str
            Путь к файлу отчёта.
    """
    Path(reportDir).mkdir(parents=True, exist_ok=True)
    reportPath = str(Path(reportDir) / f"{fileBaseName}.json")

    data: dict[str, Any] = asdict_report(report.build())

    with open(reportPath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return reportPath
