from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class AppError(Exception):
    """
    Назначение:
        Базовая ошибка загрузчика CIF.

    Инварианты/гарантии:
        - details хранит позицию сбоя в файле: line_no, record_identity, field.
        - str(err) начинается с "Line N", если номер строки известен.
    """

    category: str
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        line_no = self.details.get("line_no")
        if line_no is None:
            return self.message
        return f"Line {line_no}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Назначение:
            Плоское представление для диагностики отчёта.
        """
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "line_no": self.details.get("line_no"),
            "record_identity": self.details.get("record_identity"),
            "field": self.details.get("field"),
        }


__all__ = ["AppError"]
