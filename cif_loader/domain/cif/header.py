from __future__ import annotations

import re
from dataclasses import dataclass

from cif_loader.domain.cif.parsed_record import ParsedRecord
from cif_loader.domain.cif.record_types import RecordType
from cif_loader.domain.error_codes import ErrorCode
from cif_loader.domain.exceptions import CifFormatError

MAINFRAME_IDENTITY_RE = re.compile(r"TPS\.U(.{6})\.PD(.{6})")
USERNAME_RE = re.compile(r"[CD]F\w{4}")
EXTRACT_DATE_RE = re.compile(r"\d{6}")

FULL_EXTRACT = "F"
UPDATE_EXTRACT = "U"


@dataclass(frozen=True)
class FileMainframeIdentity:
    """
    Назначение:
        Результат разбора поля File Mainframe Identity записи HD.

    Поля:
        username / extract_date заполнены при успехе,
        error и error_code - при ошибке.
    """

    username: str | None = None
    extract_date: str | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class HeaderMetadata:
    """
    Назначение:
        Метаданные файла из записи HD. Читаются один раз в начале файла.
    """

    mainframe_identity: str
    username: str
    extract_date: str
    date_of_extract: str | None
    time_of_extract: str | None
    current_file_ref: str | None
    last_file_ref: str | None
    update_indicator: str | None
    version: str | None
    user_extract_start_date: str | None
    user_extract_end_date: str | None

    @property
    def is_full_extract(self) -> bool:
        return self.update_indicator == FULL_EXTRACT

    def to_dict(self) -> dict[str, str | None]:
        return {
            "mainframe_identity": self.mainframe_identity,
            "username": self.username,
            "extract_date": self.extract_date,
            "date_of_extract": self.date_of_extract,
            "time_of_extract": self.time_of_extract,
            "current_file_ref": self.current_file_ref,
            "last_file_ref": self.last_file_ref,
            "update_indicator": self.update_indicator,
            "version": self.version,
            "user_extract_start_date": self.user_extract_start_date,
            "user_extract_end_date": self.user_extract_end_date,
        }


def parse_file_mainframe_identity(mainframe_identity: str | None) -> FileMainframeIdentity:
    """
    Назначение:
        Разбирает и валидирует File Mainframe Identity ("TPS.Uxxxxxx.PDxxxxxx").

    Поведение:
        - Несовпадение с общим шаблоном -> ошибка, подполя не разбираются.
        - Имя пользователя: CF/DF + 4 символа.
        - Дата выгрузки: ровно шесть цифр.
    """
    value = mainframe_identity or ""
    match = MAINFRAME_IDENTITY_RE.match(value)
    if match is None:
        return FileMainframeIdentity(
            error=(
                f"File Mainframe Identity '{value}' is not valid - must start with TPS.U, "
                "be followed by six characters, then .PD and a further six characters"
            ),
            error_code=ErrorCode.INVALID_MAINFRAME_IDENTITY,
        )

    username, extract_date = match.group(1), match.group(2)

    if USERNAME_RE.fullmatch(username) is None:
        return FileMainframeIdentity(
            error=f"Username '{username}' is not valid - must start with CF or DF and be followed by four characters",
            error_code=ErrorCode.INVALID_USERNAME,
        )

    if EXTRACT_DATE_RE.fullmatch(extract_date) is None:
        return FileMainframeIdentity(
            error=f"Extract date '{extract_date}' is not valid - must be six numerics",
            error_code=ErrorCode.INVALID_EXTRACT_DATE,
        )

    return FileMainframeIdentity(username=username, extract_date=extract_date)


def build_header_metadata(record: ParsedRecord) -> HeaderMetadata:
    """
    Назначение:
        Собирает HeaderMetadata из разобранной записи HD.

    Поведение:
        - Запись другого типа -> CifFormatError(HEADER_EXPECTED).
        - Невалидный File Mainframe Identity -> CifFormatError с кодом подпроверки.
    """
    if record.record_type is not RecordType.HEADER:
        raise CifFormatError(
            ErrorCode.HEADER_EXPECTED,
            f"Expecting an HD record at the start of the file - found a '{record.record_identity}' record",
            line_no=record.line_no,
            record_identity=record.record_identity,
            field="record_identity",
        )

    identity = parse_file_mainframe_identity(record.get("file_mainframe_identity"))
    if not identity.ok:
        raise CifFormatError(
            identity.error_code or ErrorCode.INVALID_MAINFRAME_IDENTITY,
            identity.error or "Invalid File Mainframe Identity",
            line_no=record.line_no,
            record_identity=record.record_identity,
            field="file_mainframe_identity",
        )

    return HeaderMetadata(
        mainframe_identity=record.get("file_mainframe_identity") or "",
        username=identity.username or "",
        extract_date=identity.extract_date or "",
        date_of_extract=record.get("date_of_extract"),
        time_of_extract=record.get("time_of_extract"),
        current_file_ref=record.get("current_file_ref"),
        last_file_ref=record.get("last_file_ref"),
        update_indicator=record.get("update_indicator"),
        version=record.get("version"),
        user_extract_start_date=record.get("user_extract_start_date"),
        user_extract_end_date=record.get("user_extract_end_date"),
    )
