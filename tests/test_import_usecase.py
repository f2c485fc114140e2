from __future__ import annotations

import logging
from pathlib import Path

import pytest

from cif_loader.datasets.registry import list_table_specs
from cif_loader.domain.error_codes import ErrorCode
from cif_loader.domain.exceptions import CifFormatError, CifStructuralError
from cif_loader.infra.sources.cif_file import CifFileNotFoundError
from cif_loader.infra.store.db import getDbPath, openDb
from cif_loader.infra.store.repository import SqliteTimetableRepository
from cif_loader.infra.store.schema import ensure_store_ready
from cif_loader.infra.store.sqlite_engine import SqliteEngine
from cif_loader.usecases.import_cif_usecase import ImportCifUseCase
from cif_loader.usecases.inspect_cif_usecase import InspectCifUseCase
from cif_loader.usecases.store_command_service import StoreCommandService

from cif_lines import aa_line, bs_line, hd_line, ta_line, td_line, ti_line, zz_line

LOGGER = logging.getLogger("test.import")


def _build_repo(tmp_path: Path) -> SqliteTimetableRepository:
    conn = openDb(getDbPath(tmp_path / "data"))
    engine = SqliteEngine(conn)
    specs = list_table_specs()
    ensure_store_ready(engine, specs)
    return SqliteTimetableRepository(engine, specs)


def _write_cif(tmp_path: Path, name: str, *lines: str) -> str:
    path = tmp_path / name
    path.write_text("\n".join(lines) + "\n", encoding="latin-1")
    return str(path)


def test_full_import_commits_and_remembers_file(tmp_path: Path):
    repo = _build_repo(tmp_path)
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), aa_line(), zz_line())

    result = ImportCifUseCase(repo).run(cif, logger=LOGGER, run_id="r1")

    assert result.ok
    assert repo.count("tiplocs") == 1
    assert repo.count("associations") == 2
    assert repo.get_meta("cif").values == {
        "current_file_ref": "DFROC1A",
        "extract_date": "240101",
        "update_indicator": "F",
    }


def test_lookup_failure_rolls_back_whole_file(tmp_path: Path):
    repo = _build_repo(tmp_path)
    cif = _write_cif(
        tmp_path,
        "update.cif",
        hd_line(update_indicator="U"),
        ti_line("EUSTON"),
        td_line("NOWHERE"),
        zz_line(),
    )

    result = ImportCifUseCase(repo).run(cif, logger=LOGGER, run_id="r1")

    assert not result.ok
    assert result.error.code == ErrorCode.TIPLOC_NOT_FOUND
    assert result.error.line_no == 3
    assert result.stats.tiploc.insert == 1
    assert repo.count("tiplocs") == 0
    assert repo.get_meta("cif").values == {}


def test_fatal_error_rolls_back_and_propagates(tmp_path: Path):
    repo = _build_repo(tmp_path)
    cif = _write_cif(tmp_path, "truncated.cif", hd_line(), ti_line(), aa_line())

    with pytest.raises(CifFormatError) as exc_info:
        ImportCifUseCase(repo).run(cif, logger=LOGGER, run_id="r1")

    assert exc_info.value.code == ErrorCode.MISSING_TRAILER.value
    assert repo.count("tiplocs") == 0
    assert repo.count("associations") == 0


def test_update_sequence_is_checked(tmp_path: Path):
    repo = _build_repo(tmp_path)
    usecase = ImportCifUseCase(repo)
    usecase.run(_write_cif(tmp_path, "full.cif", hd_line(current_ref="DFROC1A"), ti_line(), zz_line()), LOGGER, "r1")

    skipped = _write_cif(
        tmp_path, "skip.cif", hd_line(update_indicator="U", current_ref="DFROC1C"), td_line("PADTON"), zz_line()
    )
    with pytest.raises(CifStructuralError) as exc_info:
        usecase.run(skipped, LOGGER, "r2")
    assert exc_info.value.code == ErrorCode.OUT_OF_SEQUENCE.value
    assert exc_info.value.field_name == "current_file_ref"
    assert repo.count("tiplocs") == 1

    next_file = _write_cif(
        tmp_path,
        "next.cif",
        hd_line(update_indicator="U", current_ref="DFROC1B"),
        ta_line("PADTON", new_tiploc="PADTNEW"),
        zz_line(),
    )
    result = usecase.run(next_file, LOGGER, "r3")
    assert result.ok
    assert repo.find_one("tiplocs", {"tiploc_code": "PADTNEW"}) is not None
    assert repo.get_meta("cif").values["current_file_ref"] == "DFROC1B"


def test_sequence_check_can_be_disabled(tmp_path: Path):
    repo = _build_repo(tmp_path)
    ImportCifUseCase(repo).run(
        _write_cif(tmp_path, "full.cif", hd_line(current_ref="DFROC1A"), ti_line(), zz_line()), LOGGER, "r1"
    )
    later = _write_cif(
        tmp_path, "later.cif", hd_line(update_indicator="U", current_ref="DFROC1F"), td_line("PADTON"), zz_line()
    )
    result = ImportCifUseCase(repo, check_file_sequence=False).run(later, LOGGER, "r2")
    assert result.ok
    assert repo.count("tiplocs") == 0


def test_missing_file(tmp_path: Path):
    repo = _build_repo(tmp_path)
    with pytest.raises(CifFileNotFoundError):
        ImportCifUseCase(repo).run(str(tmp_path / "absent.cif"), LOGGER, "r1")


def test_inspect_counts_records_without_store(tmp_path: Path):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), ti_line("EUSTON"), bs_line(), aa_line(), zz_line())

    result = InspectCifUseCase().run(cif)

    assert result.header.username == "DF1234"
    assert result.record_counts == {"HD": 1, "TI": 2, "BS": 1, "AA": 1, "ZZ": 1}
    assert result.lines_read == 6


def test_inspect_rejects_unknown_record(tmp_path: Path):
    cif = _write_cif(tmp_path, "bad.cif", hd_line(), "QQ", zz_line())
    with pytest.raises(CifFormatError) as exc_info:
        InspectCifUseCase().run(cif)
    assert exc_info.value.line_no == 2


@pytest.mark.parametrize(
    "lines, code, line_no",
    [
        ([hd_line(), ti_line(), zz_line(), ti_line("EUSTON")], ErrorCode.DATA_AFTER_TRAILER, 4),
        ([hd_line(), ti_line(), "", zz_line()], ErrorCode.UNSUPPORTED_RECORD_TYPE, 3),
        ([hd_line(), ti_line()], ErrorCode.MISSING_TRAILER, 2),
        ([hd_line(), hd_line(), zz_line()], ErrorCode.UNEXPECTED_HEADER, 2),
    ],
)
def test_inspect_applies_import_framing_rules(tmp_path: Path, lines, code, line_no):
    cif = _write_cif(tmp_path, "bad.cif", *lines)

    with pytest.raises(CifFormatError) as inspect_exc:
        InspectCifUseCase().run(cif)
    with pytest.raises(CifFormatError) as import_exc:
        ImportCifUseCase(_build_repo(tmp_path)).run(cif, LOGGER, "r1")

    assert inspect_exc.value.code == import_exc.value.code == code.value
    assert inspect_exc.value.line_no == import_exc.value.line_no == line_no


def test_inspect_ignores_blank_lines_after_trailer(tmp_path: Path):
    cif = _write_cif(tmp_path, "full.cif", hd_line(), ti_line(), zz_line(), "", "")

    result = InspectCifUseCase().run(cif)

    assert result.record_counts == {"HD": 1, "TI": 1, "ZZ": 1}
    assert result.lines_read == 5


def test_store_status_and_clear(tmp_path: Path):
    repo = _build_repo(tmp_path)
    ImportCifUseCase(repo).run(_write_cif(tmp_path, "full.cif", hd_line(), ti_line(), aa_line(), zz_line()), LOGGER, "r1")

    service = StoreCommandService(repo)
    status = service.status()
    assert status["counts"] == {"tiplocs": 1, "associations": 2}
    assert status["total"] == 3
    assert status["file_sequence"]["current_file_ref"] == "DFROC1A"

    cleared = service.clear(LOGGER, "r2")
    assert cleared == {"tiplocs": 1, "associations": 2}
    assert service.status()["total"] == 0
    assert repo.get_meta("cif").values == {}
