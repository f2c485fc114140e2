from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок импорта CIF.
    """

    UNSUPPORTED_RECORD_TYPE = "UNSUPPORTED_RECORD_TYPE"
    HEADER_EXPECTED = "HEADER_EXPECTED"
    UNEXPECTED_HEADER = "UNEXPECTED_HEADER"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_MAINFRAME_IDENTITY = "INVALID_MAINFRAME_IDENTITY"
    INVALID_USERNAME = "INVALID_USERNAME"
    INVALID_EXTRACT_DATE = "INVALID_EXTRACT_DATE"
    INVALID_TRANSACTION_TYPE = "INVALID_TRANSACTION_TYPE"
    INVALID_DATE = "INVALID_DATE"
    DATA_AFTER_TRAILER = "DATA_AFTER_TRAILER"
    MISSING_TRAILER = "MISSING_TRAILER"
    AMEND_IN_FULL_EXTRACT = "AMEND_IN_FULL_EXTRACT"
    OPEN_ENDED_ASSOCIATION = "OPEN_ENDED_ASSOCIATION"
    OUT_OF_SEQUENCE = "OUT_OF_SEQUENCE"
    TIPLOC_NOT_FOUND = "TIPLOC_NOT_FOUND"
    ASSOCIATION_NOT_FOUND = "ASSOCIATION_NOT_FOUND"

    @property
    def category(self) -> str:
        """
        Назначение:
            Категория ошибки по коду (format/structural/lookup).
        """
        if self in _STRUCTURAL:
            return "structural"
        if self in _LOOKUP:
            return "lookup"
        return "format"


_STRUCTURAL = {
    ErrorCode.AMEND_IN_FULL_EXTRACT,
    ErrorCode.OPEN_ENDED_ASSOCIATION,
    ErrorCode.OUT_OF_SEQUENCE,
}

_LOOKUP = {
    ErrorCode.TIPLOC_NOT_FOUND,
    ErrorCode.ASSOCIATION_NOT_FOUND,
}
