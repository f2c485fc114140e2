import pytest

from cif_loader.domain.cif.parser import classify_record, parse_record
from cif_loader.domain.cif.record_types import RECORD_BODY_WIDTH, RECORD_SCHEMAS, RecordType
from cif_loader.domain.error_codes import ErrorCode
from cif_loader.domain.exceptions import UnsupportedRecordTypeError

from cif_lines import aa_line, bs_line, ti_line, zz_line


def test_every_schema_fills_the_record_body():
    for record_type, schema in RECORD_SCHEMAS.items():
        if record_type is RecordType.TRAILER:
            assert schema.width == 0
        else:
            assert schema.width == RECORD_BODY_WIDTH, record_type


def test_classify_known_and_unknown():
    assert classify_record(zz_line()) is RecordType.TRAILER
    assert classify_record(bs_line()).is_schedule
    with pytest.raises(UnsupportedRecordTypeError) as exc_info:
        classify_record("XX" + " " * 78)
    assert exc_info.value.record_identity == "XX"
    assert exc_info.value.code == ErrorCode.UNSUPPORTED_RECORD_TYPE.value


def test_parse_unknown_prefix_reports_line():
    with pytest.raises(UnsupportedRecordTypeError) as exc_info:
        parse_record("QQ something\n", line_no=7)
    assert exc_info.value.line_no == 7
    assert "Line 7" in str(exc_info.value)


def test_parse_tiploc_insert_drops_discarded_fields():
    record = parse_record(ti_line(tiploc="PADTON", crs="PAD") + "\r\n", line_no=2)
    assert record.record_type is RecordType.TIPLOC_INSERT
    assert record.record_identity == "TI"
    assert record["record_identity"] == "TI"
    assert record.get("tiploc_code") == "PADTON "
    assert record.get("crs_code") == "PAD"
    assert "po_mcp_code" not in record
    assert "spare" not in record
    assert record.line_no == 2


def test_blank_slices_become_none():
    record = parse_record(aa_line(transaction_type="D", end="", days=""))
    assert record.get("association_end_date") is None
    assert record.get("association_days") is None
    assert record.get("main_train_uid") == "A12345"
    assert record.get("stp_indicator") == "P"


def test_short_line_yields_none_for_missing_fields():
    record = parse_record("TD" + "PADTON")
    assert record.get("tiploc_code") == "PADTON"
    assert record.to_dict() == {"record_identity": "TD", "tiploc_code": "PADTON"}


def test_trailer_has_no_fields():
    record = parse_record(zz_line())
    assert record.values == {}
