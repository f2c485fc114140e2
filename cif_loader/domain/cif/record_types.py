from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class FieldSpec:
    name: str
    width: int


@dataclass(frozen=True)
class RecordSchema:
    """
    Назначение:
        Раскладка записи CIF фиксированной ширины.

    Поля:
        fields: упорядоченные (имя, ширина), начиная с позиции 2 (после кода записи)
        discard: поля, удаляемые после нарезки (spare, устаревшие коды)
    """

    fields: tuple[FieldSpec, ...]
    discard: frozenset[str] = frozenset()

    @property
    def width(self) -> int:
        return sum(field.width for field in self.fields)


def _schema(*fields: tuple[str, int], discard: tuple[str, ...] = ("spare",)) -> RecordSchema:
    return RecordSchema(
        fields=tuple(FieldSpec(name=name, width=width) for name, width in fields),
        discard=frozenset(discard),
    )


_TIPLOC_FIELDS = (
    ("tiploc_code", 7),
    ("capitals_identification", 2),
    ("nalco", 6),
    ("nlc_check_character", 1),
    ("tps_description", 26),
    ("stanox", 5),
    ("po_mcp_code", 4),
    ("crs_code", 3),
    ("description", 16),
)


class RecordType(str, Enum):
    """
    Назначение:
        Закрытый перечень типов записей CIF; каждый вариант несёт свою схему.
    """

    HEADER = "HD"
    TIPLOC_INSERT = "TI"
    TIPLOC_AMEND = "TA"
    TIPLOC_DELETE = "TD"
    ASSOCIATION = "AA"
    BASIC_SCHEDULE = "BS"
    BASIC_SCHEDULE_EXTRA = "BX"
    ORIGIN_LOCATION = "LO"
    INTERMEDIATE_LOCATION = "LI"
    CHANGES_EN_ROUTE = "CR"
    TERMINATING_LOCATION = "LT"
    TRAILER = "ZZ"

    @property
    def schema(self) -> RecordSchema:
        return RECORD_SCHEMAS[self]

    @property
    def is_schedule(self) -> bool:
        return self in SCHEDULE_RECORD_TYPES

    @classmethod
    def lookup(cls, code: str) -> "RecordType | None":
        try:
            return cls(code)
        except ValueError:
            return None


RECORD_SCHEMAS: dict[RecordType, RecordSchema] = {
    RecordType.HEADER: _schema(
        ("file_mainframe_identity", 20),
        ("date_of_extract", 6),
        ("time_of_extract", 4),
        ("current_file_ref", 7),
        ("last_file_ref", 7),
        ("update_indicator", 1),
        ("version", 1),
        ("user_extract_start_date", 6),
        ("user_extract_end_date", 6),
        ("spare", 20),
    ),
    RecordType.TIPLOC_INSERT: _schema(
        *_TIPLOC_FIELDS,
        ("spare", 8),
        discard=("po_mcp_code", "spare"),
    ),
    RecordType.TIPLOC_AMEND: _schema(
        *_TIPLOC_FIELDS,
        ("new_tiploc", 7),
        ("spare", 1),
        discard=("po_mcp_code", "spare"),
    ),
    RecordType.TIPLOC_DELETE: _schema(
        ("tiploc_code", 7),
        ("spare", 71),
    ),
    RecordType.ASSOCIATION: _schema(
        ("transaction_type", 1),
        ("main_train_uid", 6),
        ("assoc_train_uid", 6),
        ("association_start_date", 6),
        ("association_end_date", 6),
        ("association_days", 7),
        ("category", 2),
        ("date_indicator", 1),
        ("location", 7),
        ("base_location_suffix", 1),
        ("assoc_location_suffix", 1),
        ("diagram_type", 1),
        ("assoc_type", 1),
        ("spare", 31),
        ("stp_indicator", 1),
    ),
    RecordType.BASIC_SCHEDULE: _schema(
        ("transaction_type", 1),
        ("train_uid", 6),
        ("runs_from", 6),
        ("runs_to", 6),
        ("days_run", 7),
        ("bh_running", 1),
        ("status", 1),
        ("category", 2),
        ("identity", 4),
        ("headcode", 4),
        ("course_indicator", 1),
        ("service_code", 8),
        ("portion_id", 1),
        ("power_type", 3),
        ("timing_load", 4),
        ("speed", 3),
        ("operating_characteristics", 6),
        ("train_class", 1),
        ("sleepers", 1),
        ("reservations", 1),
        ("connection_indicator", 1),
        ("catering_code", 4),
        ("service_branding", 4),
        ("spare", 1),
        ("stp_indicator", 1),
    ),
    RecordType.BASIC_SCHEDULE_EXTRA: _schema(
        ("traction_class", 4),
        ("uic_code", 5),
        ("atoc_code", 2),
        ("applicable_timetable", 1),
        ("rsid", 8),
        ("data_source", 1),
        ("spare", 57),
    ),
    RecordType.ORIGIN_LOCATION: _schema(
        ("location", 8),
        ("departure", 5),
        ("public_departure", 4),
        ("platform", 3),
        ("line", 3),
        ("engineering_allowance", 2),
        ("pathing_allowance", 2),
        ("activity", 12),
        ("performance_allowance", 2),
        ("spare", 37),
    ),
    RecordType.INTERMEDIATE_LOCATION: _schema(
        ("location", 8),
        ("arrival", 5),
        ("departure", 5),
        ("pass", 5),
        ("public_arrival", 4),
        ("public_departure", 4),
        ("platform", 3),
        ("line", 3),
        ("path", 3),
        ("activity", 12),
        ("engineering_allowance", 2),
        ("pathing_allowance", 2),
        ("performance_allowance", 2),
        ("spare", 20),
    ),
    RecordType.CHANGES_EN_ROUTE: _schema(
        ("location", 8),
        ("category", 2),
        ("identity", 4),
        ("headcode", 4),
        ("course_indicator", 1),
        ("service_code", 8),
        ("portion_id", 1),
        ("power_type", 3),
        ("timing_load", 4),
        ("speed", 3),
        ("operating_characteristics", 6),
        ("train_class", 1),
        ("sleepers", 1),
        ("reservations", 1),
        ("connection_indicator", 1),
        ("catering_code", 4),
        ("service_branding", 4),
        ("traction_class", 4),
        ("uic_code", 5),
        ("rsid", 8),
        ("spare", 5),
    ),
    RecordType.TERMINATING_LOCATION: _schema(
        ("location", 8),
        ("arrival", 5),
        ("public_arrival", 4),
        ("platform", 3),
        ("path", 3),
        ("activity", 12),
        ("spare", 43),
    ),
    RecordType.TRAILER: _schema(discard=()),
}

SCHEDULE_RECORD_TYPES = frozenset(
    {
        RecordType.BASIC_SCHEDULE,
        RecordType.BASIC_SCHEDULE_EXTRA,
        RecordType.ORIGIN_LOCATION,
        RecordType.INTERMEDIATE_LOCATION,
        RecordType.CHANGES_EN_ROUTE,
        RecordType.TERMINATING_LOCATION,
    }
)

# Длина записи CIF без двухсимвольного кода.
RECORD_BODY_WIDTH = 78
