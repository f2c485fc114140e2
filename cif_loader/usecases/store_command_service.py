from __future__ import annotations

import logging

from cif_loader.domain.ports.timetable_repository import TimetableRepositoryProtocol
from cif_loader.infra.logging.setup import logEvent
from cif_loader.usecases.import_cif_usecase import (
    META_CURRENT_FILE_REF,
    META_DATASET,
    META_EXTRACT_DATE,
    META_UPDATE_INDICATOR,
)


class StoreCommandService:
    """
    Оркестратор db-команд (status/clear).
    """

    def __init__(self, repository: TimetableRepositoryProtocol):
        self.repository = repository

    def status(self) -> dict:
        global_meta = self.repository.get_meta(None).values
        counts = {name: self.repository.count(name) for name in self.repository.list_datasets()}
        return {
            "schema_version": global_meta.get("schema_version"),
            "counts": counts,
            "total": sum(counts.values()),
            "file_sequence": self.repository.get_meta(META_DATASET).values,
        }

    def clear(self, logger: logging.Logger, run_id: str) -> dict[str, int]:
        """
        Очищает наборы данных и сбрасывает последовательность файлов.
        """
        cleared: dict[str, int] = {}
        with self.repository.transaction():
            for name in self.repository.list_datasets():
                cleared[name] = self.repository.count(name)
                self.repository.clear(name)
            for key in (META_CURRENT_FILE_REF, META_EXTRACT_DATE, META_UPDATE_INDICATOR):
                self.repository.set_meta(META_DATASET, key, None)

        logEvent(
            logger,
            logging.INFO,
            run_id,
            "store",
            "db clear: " + " ".join(f"{name}={count}" for name, count in cleared.items()),
        )
        return cleared


__all__ = ["StoreCommandService"]
