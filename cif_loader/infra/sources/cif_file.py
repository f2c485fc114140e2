from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

# CIF - ASCII; latin-1 читает любой байт без ошибки декодирования
CIF_ENCODING = "latin-1"


class CifFileNotFoundError(FileNotFoundError):
    """
    Назначение:
        Входной CIF-файл отсутствует или не является файлом.
    """


@contextmanager
def openCifFile(cifPath: str) -> Iterator[TextIO]:
    """
    Назначение:
        Открывает CIF-файл как ограниченный по времени жизни ресурс.

    Поведение:
        - Файл закрывается при выходе из блока, в том числе по исключению.
        - Итерация по результату даёт физические строки файла.
    """
    path = Path(cifPath)
    if not path.exists() or not path.is_file():
        raise CifFileNotFoundError(f"CIF file not found: {cifPath}")
    with path.open("r", encoding=CIF_ENCODING, newline="") as f:
        yield f
