from __future__ import annotations

from cif_loader.domain.cif.parsed_record import ParsedRecord
from cif_loader.domain.cif.record_types import RecordType
from cif_loader.domain.exceptions import UnsupportedRecordTypeError


def classify_record(raw_line: str) -> RecordType:
    """
    Назначение:
        Определяет тип записи по первым двум символам строки.

    Выходные данные:
        RecordType

    Поведение:
        - Неизвестный код -> UnsupportedRecordTypeError (не пропускается молча).
    """
    code = raw_line[0:2]
    record_type = RecordType.lookup(code)
    if record_type is None:
        raise UnsupportedRecordTypeError(code)
    return record_type


def parse_record(raw_line: str, line_no: int | None = None) -> ParsedRecord:
    """
    Назначение:
        Нарезает строку CIF на поля по схеме её типа.

    Входные данные:
        raw_line: str
            Строка файла (перевод строки в конце допускается).
        line_no: int | None
            Номер физической строки, для диагностики.

    Выходные данные:
        ParsedRecord

    Алгоритм:
        - Тип записи по позициям 0..1.
        - Поля режутся строго по порядку схемы начиная с позиции 2.
        - Срез из одних пробелов -> None.
        - Поля из discard удаляются.
    """
    line = raw_line.rstrip("\r\n")
    try:
        record_type = classify_record(line)
    except UnsupportedRecordTypeError as exc:
        if line_no is not None:
            exc.at_line(line_no)
        raise

    schema = record_type.schema
    values: dict[str, str | None] = {}
    pos = 2
    for spec in schema.fields:
        value = line[pos : pos + spec.width]
        values[spec.name] = value if value.strip() else None
        pos += spec.width

    for name in schema.discard:
        values.pop(name, None)

    return ParsedRecord(record_type=record_type, values=values, line_no=line_no)
