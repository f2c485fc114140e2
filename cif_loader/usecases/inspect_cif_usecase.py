from __future__ import annotations

from dataclasses import dataclass, field

from cif_loader.domain.cif.header import HeaderMetadata, build_header_metadata
from cif_loader.domain.cif.parser import classify_record, parse_record
from cif_loader.domain.cif.record_types import RecordType
from cif_loader.domain.error_codes import ErrorCode
from cif_loader.domain.exceptions import CifFormatError
from cif_loader.infra.sources.cif_file import openCifFile


@dataclass
class InspectResult:
    header: HeaderMetadata
    record_counts: dict[str, int] = field(default_factory=dict)
    lines_read: int = 0


class InspectCifUseCase:
    """
    Назначение/ответственность:
        Просмотр CIF-файла без хранилища: заголовок и количество записей по типам.

    Поведение:
        - Рамка файла проверяется так же, как при импорте: повторный HD,
          пустая или неизвестная строка до ZZ, данные после ZZ и отсутствие ZZ
          дают ту же ошибку с тем же номером строки.
        - Пустые строки после ZZ пропускаются.
        - Значения полей (даты, коды) не проверяются.
    """

    def run(self, cif_path: str) -> InspectResult:
        with openCifFile(cif_path) as lines:
            iterator = iter(lines)
            first_line = next(iterator, None)
            if first_line is None:
                raise CifFormatError(
                    ErrorCode.HEADER_EXPECTED,
                    "Expecting an HD record at the start of the file - the file is empty",
                    line_no=1,
                )
            result = InspectResult(header=build_header_metadata(parse_record(first_line, line_no=1)))
            result.record_counts["HD"] = 1
            result.lines_read = 1
            terminated = False

            for line_no, raw_line in enumerate(iterator, start=2):
                result.lines_read = line_no
                line = raw_line.rstrip("\r\n")
                if terminated:
                    if line.strip() == "":
                        continue
                    raise CifFormatError(
                        ErrorCode.DATA_AFTER_TRAILER,
                        "Data found after ZZ record",
                        line_no=line_no,
                        record_identity=line[0:2],
                    )
                try:
                    record_type = classify_record(line)
                except CifFormatError as exc:
                    raise exc.at_line(line_no)
                if record_type is RecordType.HEADER:
                    raise CifFormatError(
                        ErrorCode.UNEXPECTED_HEADER,
                        "Unexpected HD record after the start of the file",
                        line_no=line_no,
                        record_identity=record_type.value,
                    )
                code = record_type.value
                result.record_counts[code] = result.record_counts.get(code, 0) + 1
                terminated = record_type is RecordType.TRAILER

        if not terminated:
            raise CifFormatError(
                ErrorCode.MISSING_TRAILER,
                "End of file reached without a ZZ record - the file may be truncated",
                line_no=result.lines_read,
                record_identity=RecordType.TRAILER.value,
            )
        return result
