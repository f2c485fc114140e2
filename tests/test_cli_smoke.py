import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cif_loader.main import app

from cif_lines import aa_line, hd_line, td_line, ti_line, zz_line

runner = CliRunner()


def _dirs(tmp_path: Path) -> list[str]:
    return [
        "--db-dir",
        str(tmp_path / "data"),
        "--log-dir",
        str(tmp_path / "logs"),
        "--report-dir",
        str(tmp_path / "reports"),
    ]


def _write_cif(tmp_path: Path, name: str, *lines: str) -> Path:
    path = tmp_path / name
    path.write_text("\n".join(lines) + "\n", encoding="latin-1")
    return path


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "import" in result.stdout
    assert "inspect" in result.stdout
    assert "next-ref" in result.stdout
    assert "db" in result.stdout


def test_import_requires_cif(tmp_path: Path):
    result = runner.invoke(app, [*_dirs(tmp_path), "--run-id", "r1", "import"])
    assert result.exit_code == 2
    report = json.loads((tmp_path / "reports" / "report_import_r1.json").read_text(encoding="utf-8"))
    assert report["status"] == "FAILED"
    assert report["diagnostics"][0]["code"] == "CIF_NOT_FOUND"


def test_import_valid_file_writes_report(tmp_path: Path):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), zz_line())
    result = runner.invoke(app, [*_dirs(tmp_path), "--run-id", "r1", "import", "--cif", str(cif)])

    assert result.exit_code == 0, result.output
    assert "tiploc: insert=1 amend=0 delete=0" in result.stdout

    report = json.loads((tmp_path / "reports" / "report_import_r1.json").read_text(encoding="utf-8"))
    assert report["status"] == "SUCCESS"
    assert report["meta"]["lines_read"] == 3
    assert report["summary"]["ops"]["tiploc"]["insert"] == 1
    assert report["context"]["header"]["current_file_ref"] == "DFROC1A"
    assert (tmp_path / "logs" / "import_r1.log").exists()


def test_import_lookup_failure_exits_1(tmp_path: Path):
    cif = _write_cif(tmp_path, "update.cif", hd_line(update_indicator="U"), td_line("NOWHERE"), zz_line())
    result = runner.invoke(app, [*_dirs(tmp_path), "--run-id", "r1", "import", "--cif", str(cif)])

    assert result.exit_code == 1
    report = json.loads((tmp_path / "reports" / "report_import_r1.json").read_text(encoding="utf-8"))
    assert report["status"] == "FAILED"
    diagnostic = report["diagnostics"][0]
    assert diagnostic["code"] == "TIPLOC_NOT_FOUND"
    assert diagnostic["line_no"] == 2
    assert diagnostic["record_identity"] == "TD"


def test_import_fatal_error_exits_2(tmp_path: Path):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line())
    result = runner.invoke(app, [*_dirs(tmp_path), "--run-id", "r1", "import", "--cif", str(cif)])

    assert result.exit_code == 2
    report = json.loads((tmp_path / "reports" / "report_import_r1.json").read_text(encoding="utf-8"))
    assert report["diagnostics"][0]["code"] == "MISSING_TRAILER"
    assert report["diagnostics"][0]["category"] == "format"


@pytest.mark.parametrize(
    "bad_line, code, field",
    [
        (aa_line(start="24AB01"), "INVALID_DATE", "association_start_date"),
        (aa_line(end="241345"), "INVALID_DATE", "association_end_date"),
        (ti_line(""), "MISSING_FIELD", "tiploc_code"),
        (aa_line(main_uid=""), "MISSING_FIELD", "main_train_uid"),
    ],
)
def test_import_malformed_field_exits_2_and_rolls_back(tmp_path: Path, bad_line: str, code: str, field: str):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), bad_line, zz_line())
    result = runner.invoke(app, [*_dirs(tmp_path), "--run-id", "r1", "import", "--cif", str(cif)])

    assert result.exit_code == 2, result.output
    assert "Line 3" in result.output
    report = json.loads((tmp_path / "reports" / "report_import_r1.json").read_text(encoding="utf-8"))
    diagnostic = report["diagnostics"][0]
    assert diagnostic["code"] == code
    assert diagnostic["line_no"] == 3
    assert diagnostic["field"] == field

    status = runner.invoke(app, [*_dirs(tmp_path), "db", "status"])
    assert "tiplocs: count=0" in status.stdout


def test_import_unexpected_value_error_exits_2(tmp_path: Path, monkeypatch):
    def broken_run(self, cif_path, logger, run_id):
        raise ValueError("Missing required field: tiploc_code")

    monkeypatch.setattr("cif_loader.main.ImportCifUseCase.run", broken_run)
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), zz_line())
    result = runner.invoke(app, [*_dirs(tmp_path), "--run-id", "r1", "import", "--cif", str(cif)])

    assert result.exit_code == 2
    report = json.loads((tmp_path / "reports" / "report_import_r1.json").read_text(encoding="utf-8"))
    assert report["status"] == "FAILED"
    assert report["diagnostics"][0]["code"] == "INVALID_DATA"


def test_inspect_prints_counts(tmp_path: Path):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), ti_line("EUSTON"), zz_line())
    result = runner.invoke(app, [*_dirs(tmp_path), "inspect", "--cif", str(cif)])

    assert result.exit_code == 0, result.output
    assert "file_ref=DFROC1A" in result.stdout
    assert "TI: 2" in result.stdout
    assert not (tmp_path / "data" / "timetable.sqlite3").exists()


def test_db_status_and_clear(tmp_path: Path):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), zz_line())
    runner.invoke(app, [*_dirs(tmp_path), "import", "--cif", str(cif)])

    status = runner.invoke(app, [*_dirs(tmp_path), "db", "status"])
    assert status.exit_code == 0, status.output
    assert "tiplocs: count=1" in status.stdout
    assert "last_file_ref=DFROC1A" in status.stdout

    cleared = runner.invoke(app, [*_dirs(tmp_path), "db", "clear"])
    assert cleared.exit_code == 0, cleared.output
    assert "tiplocs: deleted=1" in cleared.stdout

    status = runner.invoke(app, [*_dirs(tmp_path), "db", "status"])
    assert "tiplocs: count=0" in status.stdout
    assert "last_file_ref=None" in status.stdout


def test_next_ref(tmp_path: Path):
    result = runner.invoke(app, [*_dirs(tmp_path), "next-ref", "AB1234Z"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "AB1234A"
