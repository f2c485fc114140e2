from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Iterable

from cif_loader.domain.cif.date_range import date_range_to_list
from cif_loader.domain.cif.header import HeaderMetadata, build_header_metadata
from cif_loader.domain.cif.normalizers import yymmdd_to_date
from cif_loader.domain.cif.parsed_record import ParsedRecord
from cif_loader.domain.cif.parser import parse_record
from cif_loader.domain.cif.record_types import RecordType
from cif_loader.domain.error_codes import ErrorCode
from cif_loader.domain.exceptions import CifFormatError, CifStructuralError
from cif_loader.domain.models import (
    Dataset,
    EntityCategory,
    ImportResult,
    LookupFailure,
    TransactionStats,
)
from cif_loader.domain.ports.timetable_repository import TimetableRepositoryProtocol

OPEN_ENDED_END_DATE = "999999"

TX_NEW = "N"
TX_DELETE = "D"
TX_REVISE = "R"

_ASSOCIATION_RANGE_FIELDS = (
    "transaction_type",
    "association_start_date",
    "association_end_date",
    "association_days",
)


class ProcessorState(str, Enum):
    EXPECTING_HEADER = "expecting_header"
    STREAMING = "streaming"
    TERMINATED = "terminated"


@dataclass
class ProcessingContext:
    """
    Назначение:
        Изменяемое состояние одного прогона: заголовок, счётчики, буферы вставок.
    Инварианты/гарантии:
        - Буферы сбрасываются в хранилище в начале обработки каждой следующей строки.
        - Контекст принадлежит только одному прогону процессора.
    """

    state: ProcessorState = ProcessorState.EXPECTING_HEADER
    header: HeaderMetadata | None = None
    stats: TransactionStats = field(default_factory=TransactionStats)
    pending: dict[Dataset, list[dict]] = field(
        default_factory=lambda: {Dataset.TIPLOCS: [], Dataset.ASSOCIATIONS: []}
    )
    line_no: int = 0
    error: LookupFailure | None = None
    warned_record_types: set[str] = field(default_factory=set)

    def enqueue(self, dataset: Dataset, entity: dict) -> None:
        self.pending[dataset].append(entity)


RecordHandler = Callable[[ProcessingContext, ParsedRecord], "LookupFailure | None"]


def _clean(values: dict[str, str | None]) -> dict[str, str | None]:
    # Хранилище получает значения без хвостового заполнения пробелами
    return {key: (value.rstrip() if value is not None else None) for key, value in values.items()}


class CifTransactionProcessor:
    """
    Назначение/ответственность:
        Построчная машина состояний импорта CIF:
        EXPECTING_HEADER -> STREAMING -> TERMINATED.
    Взаимодействия:
        - TimetableRepositoryProtocol: поиск, сохранение, удаление, пакетная вставка.
    Контракт:
        - Фатальные ошибки (CifFormatError/CifStructuralError) пробрасываются.
        - Ненайденная сущность для amend/delete/revise возвращается в ImportResult.error,
          обработка при этом останавливается.
    """

    def __init__(
        self,
        repository: TimetableRepositoryProtocol,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)
        self.run_id = run_id or "-"
        self._handlers: dict[RecordType, RecordHandler] = {
            RecordType.HEADER: self._on_unexpected_header,
            RecordType.TRAILER: self._on_trailer,
            RecordType.TIPLOC_INSERT: self._on_tiploc_insert,
            RecordType.TIPLOC_AMEND: self._on_tiploc_amend,
            RecordType.TIPLOC_DELETE: self._on_tiploc_delete,
            RecordType.ASSOCIATION: self._on_association,
        }

    def run(
        self,
        lines: Iterable[str],
        on_header: Callable[[HeaderMetadata], None] | None = None,
    ) -> ImportResult:
        """
        Назначение:
            Обрабатывает строки файла по порядку и возвращает итог прогона.

        Входные данные:
            lines: Iterable[str]
                Физические строки CIF-файла, первая - HD.
            on_header: callable | None
                Дополнительная проверка заголовка до обработки данных;
                исключение из неё прерывает прогон.
        """
        context = ProcessingContext()
        iterator = iter(lines)

        first_line = next(iterator, None)
        if first_line is None:
            raise CifFormatError(
                ErrorCode.HEADER_EXPECTED,
                "Expecting an HD record at the start of the file - the file is empty",
                line_no=1,
            )
        context.line_no = 1
        context.header = build_header_metadata(parse_record(first_line, line_no=1))
        self._log_header(context.header)
        if on_header is not None:
            on_header(context.header)
        context.state = ProcessorState.STREAMING

        for line_no, raw_line in enumerate(iterator, start=2):
            context.line_no = line_no
            self._flush(context)

            line = raw_line.rstrip("\r\n")
            if context.state is ProcessorState.TERMINATED:
                if line.strip() == "":
                    continue
                raise CifFormatError(
                    ErrorCode.DATA_AFTER_TRAILER,
                    "Data found after ZZ record",
                    line_no=line_no,
                    record_identity=line[0:2],
                )

            record = parse_record(line, line_no=line_no)
            handler = self._handlers.get(record.record_type, self._on_unsupported)
            failure = handler(context, record)
            if failure is not None:
                context.error = failure
                self._log(logging.ERROR, f"Import stopped at line {line_no}: {failure.message}")
                return self._result(context)

        self._flush(context)

        if context.state is not ProcessorState.TERMINATED:
            raise CifFormatError(
                ErrorCode.MISSING_TRAILER,
                "End of file reached without a ZZ record - the file may be truncated",
                line_no=context.line_no,
                record_identity=RecordType.TRAILER.value,
            )

        self._log(logging.INFO, f"Processing complete: {context.line_no} lines")
        return self._result(context)

    def _result(self, context: ProcessingContext) -> ImportResult:
        return ImportResult(
            stats=context.stats,
            header=context.header,
            lines_read=context.line_no,
            error=context.error,
        )

    def _flush(self, context: ProcessingContext) -> None:
        for dataset, entities in context.pending.items():
            if not entities:
                continue
            inserted = self.repository.bulk_insert(dataset.value, entities)
            self._log(logging.DEBUG, f"Flushed {inserted} pending {dataset.value}")
            context.pending[dataset] = []

    def _on_unexpected_header(self, context: ProcessingContext, record: ParsedRecord) -> None:
        raise CifFormatError(
            ErrorCode.UNEXPECTED_HEADER,
            "Unexpected HD record after the start of the file",
            line_no=record.line_no,
            record_identity=record.record_identity,
        )

    def _on_trailer(self, context: ProcessingContext, record: ParsedRecord) -> None:
        context.state = ProcessorState.TERMINATED

    def _on_unsupported(self, context: ProcessingContext, record: ParsedRecord) -> None:
        identity = record.record_identity
        context.stats.add_unsupported(identity)
        if identity not in context.warned_record_types:
            context.warned_record_types.add(identity)
            self._log(
                logging.WARNING,
                f"{identity} records are not yet supported and will be counted only (first at line {record.line_no})",
            )

    def _on_tiploc_insert(self, context: ProcessingContext, record: ParsedRecord) -> None:
        values = _clean(record.values)
        self._require(record, values, "tiploc_code")
        context.enqueue(Dataset.TIPLOCS, values)
        context.stats.add(EntityCategory.TIPLOC, "insert")

    def _on_tiploc_amend(self, context: ProcessingContext, record: ParsedRecord) -> LookupFailure | None:
        self._require_update_extract(context, record, "TIPLOC Amend")
        values = _clean(record.values)
        tiploc_code = self._require(record, values, "tiploc_code")

        entity = self.repository.find_one(Dataset.TIPLOCS.value, {"tiploc_code": tiploc_code})
        if entity is None:
            return self._tiploc_not_found(record, tiploc_code)

        new_tiploc = values.pop("new_tiploc", None)
        if new_tiploc is not None:
            values["tiploc_code"] = new_tiploc

        entity.update(values)
        self.repository.save(Dataset.TIPLOCS.value, entity)
        context.stats.add(EntityCategory.TIPLOC, "amend")
        return None

    def _on_tiploc_delete(self, context: ProcessingContext, record: ParsedRecord) -> LookupFailure | None:
        self._require_update_extract(context, record, "TIPLOC Delete")
        values = _clean(record.values)
        tiploc_code = self._require(record, values, "tiploc_code")

        entity = self.repository.find_one(Dataset.TIPLOCS.value, {"tiploc_code": tiploc_code})
        if entity is None:
            return self._tiploc_not_found(record, tiploc_code)

        self.repository.delete(Dataset.TIPLOCS.value, entity)
        context.stats.add(EntityCategory.TIPLOC, "delete")
        return None

    def _on_association(self, context: ProcessingContext, record: ParsedRecord) -> LookupFailure | None:
        values = _clean(record.values)
        transaction_type = values.get("transaction_type")
        if transaction_type not in (TX_NEW, TX_DELETE, TX_REVISE):
            raise CifFormatError(
                ErrorCode.INVALID_TRANSACTION_TYPE,
                f"Invalid transaction type '{transaction_type}' for AA record",
                line_no=record.line_no,
                record_identity=record.record_identity,
                field="transaction_type",
            )

        self._require(record, values, "main_train_uid")
        self._require(record, values, "assoc_train_uid")

        if transaction_type == TX_NEW and values.get("association_end_date") == OPEN_ENDED_END_DATE:
            raise CifStructuralError(
                ErrorCode.OPEN_ENDED_ASSOCIATION,
                "Open-ended associations (end date 999999) are not supported",
                line_no=record.line_no,
                record_identity=record.record_identity,
                field="association_end_date",
            )

        start_date = self._date(record, values, "association_start_date")
        if transaction_type == TX_DELETE:
            return self._on_association_delete(context, record, values, start_date)

        end_date = self._date(record, values, "association_end_date")
        if transaction_type == TX_NEW:
            return self._on_association_new(context, record, values, start_date, end_date)
        return self._on_association_revise(context, record, values, start_date, end_date)

    def _on_association_new(
        self,
        context: ProcessingContext,
        record: ParsedRecord,
        values: dict[str, str | None],
        start_date: str,
        end_date: str,
    ) -> None:
        dates = self._expand(record, values, start_date, end_date)

        base = {key: value for key, value in values.items() if key not in _ASSOCIATION_RANGE_FIELDS}
        for assoc_date in dates:
            context.enqueue(Dataset.ASSOCIATIONS, {**base, "date": assoc_date})
            context.stats.add(EntityCategory.ASSOCIATION, "insert")
        return None

    def _on_association_delete(
        self,
        context: ProcessingContext,
        record: ParsedRecord,
        values: dict[str, str | None],
        start_date: str,
    ) -> LookupFailure | None:
        key = self._association_key(values, start_date)
        entity = self.repository.find_one(Dataset.ASSOCIATIONS.value, key)
        if entity is None:
            return self._association_not_found(record, key)

        self.repository.delete(Dataset.ASSOCIATIONS.value, entity)
        context.stats.add(EntityCategory.ASSOCIATION, "delete")
        return None

    def _on_association_revise(
        self,
        context: ProcessingContext,
        record: ParsedRecord,
        values: dict[str, str | None],
        start_date: str,
        end_date: str,
    ) -> LookupFailure | None:
        for assoc_date in self._expand(record, values, start_date, end_date):
            key = self._association_key(values, assoc_date)
            entity = self.repository.find_one(Dataset.ASSOCIATIONS.value, key)
            if entity is None:
                return self._association_not_found(record, key)
            self.repository.delete(Dataset.ASSOCIATIONS.value, entity)
            context.stats.add(EntityCategory.ASSOCIATION, "amend")
        return None

    def _expand(
        self,
        record: ParsedRecord,
        values: dict[str, str | None],
        start_date: str,
        end_date: str,
    ) -> list[str]:
        day_mask = self._require(record, values, "association_days")
        return date_range_to_list(start_date, end_date, day_mask)

    @classmethod
    def _date(cls, record: ParsedRecord, values: dict[str, str | None], name: str) -> str:
        """
        Назначение:
            Обязательное поле даты YYMMDD -> ISO с проверкой календаря.

        Ошибки:
            CifFormatError(INVALID_DATE) с номером строки и именем поля.
        """
        raw = cls._require(record, values, name)
        try:
            iso_date = yymmdd_to_date(raw)
            date.fromisoformat(iso_date)
        except ValueError:
            raise CifFormatError(
                ErrorCode.INVALID_DATE,
                f"{record.record_identity} record has invalid date '{raw}' in '{name}'",
                line_no=record.line_no,
                record_identity=record.record_identity,
                field=name,
            ) from None
        return iso_date

    @staticmethod
    def _association_key(values: dict[str, str | None], assoc_date: str) -> dict[str, str | None]:
        return {
            "main_train_uid": values.get("main_train_uid"),
            "assoc_train_uid": values.get("assoc_train_uid"),
            "date": assoc_date,
        }

    @staticmethod
    def _require(record: ParsedRecord, values: dict[str, str | None], name: str) -> str:
        value = values.get(name)
        if value is None:
            raise CifFormatError(
                ErrorCode.MISSING_FIELD,
                f"{record.record_identity} record has no value for '{name}'",
                line_no=record.line_no,
                record_identity=record.record_identity,
                field=name,
            )
        return value

    @staticmethod
    def _require_update_extract(context: ProcessingContext, record: ParsedRecord, label: str) -> None:
        if context.header is not None and context.header.is_full_extract:
            raise CifStructuralError(
                ErrorCode.AMEND_IN_FULL_EXTRACT,
                f"{label} ({record.record_identity}) record found in a full extract",
                line_no=record.line_no,
                record_identity=record.record_identity,
                field="update_indicator",
            )

    @staticmethod
    def _tiploc_not_found(record: ParsedRecord, tiploc_code: str) -> LookupFailure:
        return LookupFailure(
            code=ErrorCode.TIPLOC_NOT_FOUND,
            dataset=Dataset.TIPLOCS,
            line_no=record.line_no or 0,
            record_identity=record.record_identity,
            field="tiploc_code",
            key={"tiploc_code": tiploc_code},
            message=f"TIPLOC {tiploc_code} not found in {record.record_identity} record at line {record.line_no}",
        )

    @staticmethod
    def _association_not_found(record: ParsedRecord, key: dict[str, str | None]) -> LookupFailure:
        return LookupFailure(
            code=ErrorCode.ASSOCIATION_NOT_FOUND,
            dataset=Dataset.ASSOCIATIONS,
            line_no=record.line_no or 0,
            record_identity=record.record_identity,
            field="main_train_uid",
            key=key,
            message=(
                f"Failed to find association between {key['main_train_uid']} and "
                f"{key['assoc_train_uid']} on {key['date']} (line {record.line_no})"
            ),
        )

    def _log_header(self, header: HeaderMetadata) -> None:
        self._log(
            logging.INFO,
            "Header: mainframe_id={mid} user={user} extract_date={date} extract_time={time} "
            "file_ref={cur} last_ref={last} update_indicator={ind} version={ver} "
            "extract_start={start} extract_end={end}".format(
                mid=header.mainframe_identity,
                user=header.username,
                date=header.date_of_extract,
                time=header.time_of_extract,
                cur=header.current_file_ref,
                last=header.last_file_ref,
                ind=header.update_indicator,
                ver=header.version,
                start=header.user_extract_start_date,
                end=header.user_extract_end_date,
            ),
        )

    def _log(self, level: int, message: str) -> None:
        self.logger.log(level, message, extra={"runId": self.run_id, "component": "cif"})
