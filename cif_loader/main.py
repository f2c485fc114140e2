from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

import typer

from cif_loader.common.run_id import generate_run_id
from cif_loader.common.time import getDurationMs
from cif_loader.config import Settings, loadSettings
from cif_loader.datasets.registry import list_table_specs
from cif_loader.domain.cif.file_reference import next_file_reference
from cif_loader.domain.exceptions import CifImportError
from cif_loader.domain.reporting.collector import ReportCollector
from cif_loader.infra.artifacts.report_writer import createEmptyReport, finalizeReport, writeReportJson
from cif_loader.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent
from cif_loader.infra.store.db import getDbPath, openDb
from cif_loader.infra.store.repository import SqliteTimetableRepository
from cif_loader.infra.store.schema import ensure_store_ready
from cif_loader.infra.store.sqlite_engine import SqliteEngine
from cif_loader.usecases.import_cif_usecase import ImportCifUseCase
from cif_loader.usecases.inspect_cif_usecase import InspectCifUseCase
from cif_loader.usecases.store_command_service import StoreCommandService

app = typer.Typer(no_args_is_help=True, add_completion=False)
dbApp = typer.Typer(no_args_is_help=True)

EXIT_OK = 0
EXIT_LOOKUP_FAILURE = 1
EXIT_FATAL = 2


def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def requireCif(cifPath: str | None) -> None:
    """
    Назначение:
        Базовая проверка наличия CIF-файла.

    Поведение:
        - Если путь не задан или файл не существует - exit code 2.
    """
    if not cifPath:
        typer.echo("ERROR: --cif is required", err=True)
        raise typer.Exit(code=EXIT_FATAL)

    p = Path(cifPath)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: CIF file not found: {cifPath}", err=True)
        raise typer.Exit(code=EXIT_FATAL)


def openRepository(settings: Settings) -> tuple[sqlite3.Connection, SqliteTimetableRepository]:
    """
    Назначение:
        Открывает хранилище и гарантирует актуальную схему.
    """
    conn = openDb(getDbPath(settings.db_dir))
    try:
        engine = SqliteEngine(conn)
        specs = list_table_specs()
        ensure_store_ready(engine, specs)
        return conn, SqliteTimetableRepository(engine, specs)
    except sqlite3.Error:
        conn.close()
        raise


def runWithReport(
    ctx: typer.Context,
    commandName: str,
    cifPath: str | None,
    requiresCif: bool,
    runner,
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - создаёт report.json skeleton
        - валидирует обязательный вход (CIF)
        - гарантирует запись отчёта в finally

    Поведение:
        - runner(logger, report) возвращает exit code.
        - На отсутствии обязательного файла: ошибка в лог и report, exit code 2.
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)
    report.meta.cif_path = cifPath

    exitCode: int | None = None

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")

        if requiresCif:
            try:
                requireCif(cifPath)
            except typer.Exit:
                logEvent(logger, logging.ERROR, runId, "cif", "CIF file is missing or not accessible")
                report.add_error("CIF_NOT_FOUND", f"CIF file is missing or not accessible: {cifPath}", category="input")
                exitCode = EXIT_FATAL
                return

        exitCode = runner(logger, report)

    finally:
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        finalizeReport(
            report=report,
            durationMs=durationMs,
            logFile=logFilePath,
            dbDir=settings.db_dir,
            reportDir=settings.report_dir,
        )
        reportPath = writeReportJson(report, settings.report_dir, f"report_{commandName}_{runId}")
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")
        closeCommandLogger(logger)

        if exitCode is not None:
            raise typer.Exit(code=exitCode)


def runImportCommand(ctx: typer.Context, cifPath: str | None) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report: ReportCollector) -> int:
        try:
            conn, repository = openRepository(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Failed to open store: {exc}")
            report.add_error("STORE_UNAVAILABLE", str(exc))
            typer.echo("ERROR: failed to open store (see logs/report)", err=True)
            return EXIT_FATAL

        try:
            usecase = ImportCifUseCase(repository, check_file_sequence=settings.check_file_sequence)
            result = usecase.run(cifPath or "", logger=logger, run_id=runId)
            report.add_import_result(result)

            stats = result.stats
            typer.echo(
                f"tiploc: insert={stats.tiploc.insert} amend={stats.tiploc.amend} delete={stats.tiploc.delete}"
            )
            typer.echo(
                "association: insert={i} amend={a} delete={d}".format(
                    i=stats.association.insert,
                    a=stats.association.amend,
                    d=stats.association.delete,
                )
            )
            for identity, count in sorted(stats.unsupported.items()):
                typer.echo(f"unsupported {identity}: {count}")

            if result.error is not None:
                typer.echo(f"ERROR: {result.error.message} (import rolled back)", err=True)
                return EXIT_LOOKUP_FAILURE
            return EXIT_OK
        except CifImportError as exc:
            logEvent(logger, logging.ERROR, runId, "cif", f"Import failed: {exc}")
            report.add_import_error(exc)
            typer.echo(f"ERROR: {exc}", err=True)
            return EXIT_FATAL
        except (OSError, sqlite3.Error) as exc:
            logEvent(logger, logging.ERROR, runId, "core", f"Import failed: {exc}")
            report.add_error("IMPORT_FAILED", str(exc))
            typer.echo(f"ERROR: import failed: {exc}", err=True)
            return EXIT_FATAL
        except ValueError as exc:
            # Значение поля, не пойманное разбором записи; транзакция уже откатана.
            logEvent(logger, logging.ERROR, runId, "cif", f"Invalid CIF data: {exc}")
            report.add_error("INVALID_DATA", str(exc), category="format")
            typer.echo(f"ERROR: invalid CIF data: {exc}", err=True)
            return EXIT_FATAL
        finally:
            conn.close()

    runWithReport(
        ctx=ctx,
        commandName="import",
        cifPath=cifPath,
        requiresCif=True,
        runner=execute,
    )


def runInspectCommand(ctx: typer.Context, cifPath: str | None) -> None:
    runId = ctx.obj["runId"]

    def execute(logger, report: ReportCollector) -> int:
        try:
            result = InspectCifUseCase().run(cifPath or "")
        except CifImportError as exc:
            logEvent(logger, logging.ERROR, runId, "cif", f"Inspect failed: {exc}")
            report.add_import_error(exc)
            typer.echo(f"ERROR: {exc}", err=True)
            return EXIT_FATAL
        except OSError as exc:
            logEvent(logger, logging.ERROR, runId, "cif", f"CIF read error: {exc}")
            report.add_error("CIF_READ_ERROR", str(exc), category="input")
            typer.echo(f"ERROR: CIF read error: {exc}", err=True)
            return EXIT_FATAL

        header = result.header
        report.meta.lines_read = result.lines_read
        report.summary.record_counts = dict(result.record_counts)
        report.set_context("header", header.to_dict())

        typer.echo(
            f"file_ref={header.current_file_ref} last_ref={header.last_file_ref} "
            f"update_indicator={header.update_indicator} extract_date={header.extract_date} "
            f"user={header.username}"
        )
        for code, count in result.record_counts.items():
            typer.echo(f"{code}: {count}")
        logEvent(logger, logging.INFO, runId, "cif", f"Inspected {result.lines_read} lines")
        return EXIT_OK

    runWithReport(
        ctx=ctx,
        commandName="inspect",
        cifPath=cifPath,
        requiresCif=True,
        runner=execute,
    )


def runDbStatusCommand(ctx: typer.Context) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report: ReportCollector) -> int:
        try:
            conn, repository = openRepository(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Failed to open store: {exc}")
            report.add_error("STORE_UNAVAILABLE", str(exc))
            typer.echo("ERROR: failed to open store (see logs/report)", err=True)
            return EXIT_FATAL

        try:
            status = StoreCommandService(repository).status()
            report.set_context("status", status)
            typer.echo(f"schema_version={status['schema_version']} total={status['total']}")
            for name, count in status["counts"].items():
                typer.echo(f"{name}: count={count}")
            sequence = status["file_sequence"]
            typer.echo(
                "last_file_ref={ref} extract_date={date} update_indicator={ind}".format(
                    ref=sequence.get("current_file_ref"),
                    date=sequence.get("extract_date"),
                    ind=sequence.get("update_indicator"),
                )
            )
            return EXIT_OK
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Store status failed: {exc}")
            report.add_error("STORE_STATUS_FAILED", str(exc))
            typer.echo("ERROR: store status failed (see logs/report)", err=True)
            return EXIT_FATAL
        finally:
            conn.close()

    runWithReport(
        ctx=ctx,
        commandName="db-status",
        cifPath=None,
        requiresCif=False,
        runner=execute,
    )


def runDbClearCommand(ctx: typer.Context) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]

    def execute(logger, report: ReportCollector) -> int:
        try:
            conn, repository = openRepository(settings)
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Failed to open store: {exc}")
            report.add_error("STORE_UNAVAILABLE", str(exc))
            typer.echo("ERROR: failed to open store (see logs/report)", err=True)
            return EXIT_FATAL

        try:
            cleared = StoreCommandService(repository).clear(logger, runId)
            report.set_context("cleared", cleared)
            for name, count in cleared.items():
                typer.echo(f"{name}: deleted={count}")
            return EXIT_OK
        except sqlite3.Error as exc:
            logEvent(logger, logging.ERROR, runId, "store", f"Store clear failed: {exc}")
            report.add_error("STORE_CLEAR_FAILED", str(exc))
            typer.echo("ERROR: store clear failed (see logs/report)", err=True)
            return EXIT_FATAL
        finally:
            conn.close()

    runWithReport(
        ctx=ctx,
        commandName="db-clear",
        cifPath=None,
        requiresCif=False,
        runner=execute,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(
        None, "--run-id", help="Run identifier for log and report names. If omitted, a time-sortable id is generated."
    ),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    dbDir: str | None = typer.Option(None, "--db-dir", help="Directory for the SQLite timetable store."),
    checkFileSequence: bool | None = typer.Option(
        None,
        "--check-file-sequence/--no-check-file-sequence",
        help="Require update extracts to follow the last applied file reference",
        show_default=True,
    ),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - создаёт каталоги log/report/db
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "db_dir": dbDir,
        "check_file_sequence": checkFileSequence,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=EXIT_FATAL)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)
    ensureDir(loaded.settings.db_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("import")
def importCif(
    ctx: typer.Context,
    cif: str | None = typer.Option(None, "--cif", help="Path to input CIF file"),
):
    runImportCommand(ctx, cif)


@app.command("inspect")
def inspectCif(
    ctx: typer.Context,
    cif: str | None = typer.Option(None, "--cif", help="Path to input CIF file"),
):
    runInspectCommand(ctx, cif)


@app.command("next-ref")
def nextRef(reference: str = typer.Argument(..., help="Last applied file reference, e.g. DFROC1A")):
    typer.echo(next_file_reference(reference))


@dbApp.command("status")
def dbStatus(ctx: typer.Context):
    runDbStatusCommand(ctx)


@dbApp.command("clear")
def dbClear(ctx: typer.Context):
    runDbClearCommand(ctx)


app.add_typer(dbApp, name="db")


if __name__ == "__main__":
    app()
