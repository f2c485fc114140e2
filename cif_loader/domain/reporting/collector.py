from __future__ import annotations

from dataclasses import asdict
from typing import Any

from cif_loader.common.time import getNowIso
from cif_loader.domain.exceptions import CifImportError
from cif_loader.domain.models import ImportResult, LookupFailure
from cif_loader.domain.reporting.models import ReportDiagnostic, ReportEnvelope, ReportMeta, ReportSummary


class ReportCollector:
    """
    Назначение/ответственность:
        Единый сборщик отчётов для всех команд.
    """

    def __init__(self, run_id: str, command: str, started_at: str | None = None) -> None:
        self.meta = ReportMeta(run_id=run_id, command=command, started_at=started_at or getNowIso())
        self.summary = ReportSummary()
        self.diagnostics: list[ReportDiagnostic] = []
        self.context: dict[str, Any] = {}
        self.status: str | None = None

    def set_context(self, name: str, value: dict[str, Any]) -> None:
        self.context[name] = value

    def add_import_result(self, result: ImportResult) -> None:
        stats = result.stats.to_dict()
        self.summary.unsupported_records = stats.pop("unsupported")
        self.summary.ops = stats
        self.meta.lines_read = result.lines_read
        if result.header is not None:
            self.set_context("header", result.header.to_dict())
        if result.error is not None:
            self.add_lookup_failure(result.error)

    def add_lookup_failure(self, failure: LookupFailure) -> None:
        self._add(
            ReportDiagnostic(
                severity="error",
                category="lookup",
                code=failure.code.value,
                message=failure.message,
                line_no=failure.line_no,
                record_identity=failure.record_identity,
                field=failure.field,
            )
        )

    def add_import_error(self, exc: CifImportError) -> None:
        self._add(ReportDiagnostic(severity="error", **exc.to_dict()))

    def add_error(self, code: str, message: str, category: str = "runtime") -> None:
        self._add(ReportDiagnostic(severity="error", category=category, code=code, message=message))

    def finish(self, finished_at: str | None = None, duration_ms: int | None = None) -> None:
        self.meta.finished_at = finished_at or getNowIso()
        self.meta.duration_ms = duration_ms
        if self.status is None:
            self.status = self._derive_status()

    def build(self) -> ReportEnvelope:
        return ReportEnvelope(
            status=self.status or self._derive_status(),
            meta=self.meta,
            summary=self.summary,
            diagnostics=self.diagnostics,
            context=self.context,
        )

    def _add(self, diagnostic: ReportDiagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self.summary.errors_total += 1

    def _derive_status(self) -> str:
        return "SUCCESS" if self.summary.errors_total == 0 else "FAILED"


def asdict_report(envelope: ReportEnvelope) -> dict[str, Any]:
    return {
        "status": envelope.status,
        "meta": asdict(envelope.meta),
        "summary": asdict(envelope.summary),
        "diagnostics": [asdict(diag) for diag in envelope.diagnostics],
        "context": envelope.context,
    }
