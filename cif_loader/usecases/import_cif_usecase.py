from __future__ import annotations

import logging

from cif_loader.domain.cif.file_reference import next_file_reference
from cif_loader.domain.cif.header import HeaderMetadata
from cif_loader.domain.cif.processor import CifTransactionProcessor
from cif_loader.domain.error_codes import ErrorCode
from cif_loader.domain.exceptions import CifStructuralError
from cif_loader.domain.models import ImportResult
from cif_loader.domain.ports.timetable_repository import TimetableRepositoryProtocol
from cif_loader.infra.logging.setup import logEvent
from cif_loader.infra.sources.cif_file import openCifFile

META_DATASET = "cif"
META_CURRENT_FILE_REF = "current_file_ref"
META_EXTRACT_DATE = "extract_date"
META_UPDATE_INDICATOR = "update_indicator"


class _ImportAborted(Exception):
    """
    Внутренний сигнал отката транзакции при LookupFailure.
    """

    def __init__(self, result: ImportResult):
        super().__init__(result.error.message if result.error else "import aborted")
        self.result = result


class ImportCifUseCase:
    """
    Назначение/ответственность:
        Импорт одного CIF-файла в хранилище как единая транзакция.
    Взаимодействия:
        - CifTransactionProcessor: построчная обработка.
        - TimetableRepositoryProtocol: транзакция и meta последовательности файлов.
    Контракт:
        - Фатальная ошибка (CifImportError) откатывает транзакцию и пробрасывается.
        - LookupFailure откатывает транзакцию и возвращается в ImportResult.error.
        - Успех фиксирует изменения и запоминает ссылку на файл.
    """

    def __init__(self, repository: TimetableRepositoryProtocol, check_file_sequence: bool = True):
        self.repository = repository
        self.check_file_sequence = check_file_sequence

    def run(self, cif_path: str, logger: logging.Logger, run_id: str) -> ImportResult:
        processor = CifTransactionProcessor(self.repository, logger=logger, run_id=run_id)
        logEvent(logger, logging.INFO, run_id, "core", f"Import started: {cif_path}")

        try:
            with openCifFile(cif_path) as lines, self.repository.transaction():
                result = processor.run(lines, on_header=self._check_sequence)
                if not result.ok:
                    raise _ImportAborted(result)
                self._remember_file(result.header)
        except _ImportAborted as aborted:
            logEvent(
                logger,
                logging.ERROR,
                run_id,
                "store",
                "Import rolled back: all changes from this file were discarded",
            )
            return aborted.result

        stats = result.stats
        logEvent(
            logger,
            logging.INFO,
            run_id,
            "core",
            "Import committed: tiploc={t} association={a} unsupported={u}".format(
                t=_format_counts(stats.tiploc),
                a=_format_counts(stats.association),
                u=stats.unsupported or {},
            ),
        )
        return result

    def _check_sequence(self, header: HeaderMetadata) -> None:
        if not self.check_file_sequence or header.is_full_extract:
            return
        last_applied = self.repository.get_meta(META_DATASET).values.get(META_CURRENT_FILE_REF)
        if not last_applied or not header.current_file_ref:
            return
        expected = next_file_reference(last_applied)
        if header.current_file_ref != expected:
            raise CifStructuralError(
                ErrorCode.OUT_OF_SEQUENCE,
                f"Update file {header.current_file_ref} is out of sequence - "
                f"last applied file was {last_applied}, expected {expected}",
                line_no=1,
                record_identity="HD",
                field="current_file_ref",
            )

    def _remember_file(self, header: HeaderMetadata | None) -> None:
        if header is None:
            return
        self.repository.set_meta(META_DATASET, META_CURRENT_FILE_REF, header.current_file_ref)
        self.repository.set_meta(META_DATASET, META_EXTRACT_DATE, header.extract_date)
        self.repository.set_meta(META_DATASET, META_UPDATE_INDICATOR, header.update_indicator)


def _format_counts(counts) -> str:
    return f"insert={counts.insert} amend={counts.amend} delete={counts.delete}"
