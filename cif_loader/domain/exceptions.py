from __future__ import annotations

from typing import Any

from cif_loader.domain.error_codes import ErrorCode
from cif_loader.errors import AppError


class CifImportError(AppError):
    """
    Назначение:
        Фатальная ошибка разбора/импорта CIF-файла.
    Инварианты/гарантии:
        - details всегда содержит line_no, record_identity и field (возможно None),
          чтобы оператор видел, какая запись и какое поле вызвали сбой.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        line_no: int | None = None,
        record_identity: str | None = None,
        field: str | None = None,
        **extra: Any,
    ) -> None:
        details = {"line_no": line_no, "record_identity": record_identity, "field": field}
        details.update(extra)
        super().__init__(category=code.category, code=code.value, message=message, details=details)

    def at_line(self, line_no: int) -> "CifImportError":
        self.details["line_no"] = line_no
        return self

    @property
    def line_no(self) -> int | None:
        return self.details.get("line_no")

    @property
    def field_name(self) -> str | None:
        return self.details.get("field")


class CifFormatError(CifImportError):
    """
    Назначение:
        Нарушение формата файла: неизвестный тип записи, битый заголовок,
        неверный тип транзакции, данные после ZZ, отсутствие ZZ.
    """


class CifStructuralError(CifImportError):
    """
    Назначение:
        Запись корректна по формату, но противоречит содержимому файла
        (amend/delete в полной выгрузке, бессрочная ассоциация, нарушение
        последовательности файлов).
    """


class UnsupportedRecordTypeError(CifFormatError):
    def __init__(self, record_identity: str, *, line_no: int | None = None) -> None:
        super().__init__(
            ErrorCode.UNSUPPORTED_RECORD_TYPE,
            f"Unsupported record type '{record_identity}'",
            line_no=line_no,
            record_identity=record_identity,
            field="record_identity",
        )
        self.record_identity = record_identity


__all__ = [
    "CifImportError",
    "CifFormatError",
    "CifStructuralError",
    "UnsupportedRecordTypeError",
]
