from __future__ import annotations

from datetime import datetime


def _century(yy: int) -> int:
    # 60..99 -> 1900-е, остальное -> 2000-е
    return 19 if 60 <= yy <= 99 else 20


def _format_date(yy: int, mm: int, dd: int) -> str:
    return f"{_century(yy)}{yy:02d}-{mm:02d}-{dd:02d}"


def yymmdd_to_date(value: str | None) -> str | None:
    """
    Назначение:
        YYMMDD -> YYYY-MM-DD. Пустое значение -> None.
    """
    if value is None or value.strip() == "":
        return None
    yy = int(value[0:2])
    mm = int(value[2:4])
    dd = int(value[4:6])
    return _format_date(yy, mm, dd)


def ddmmyy_to_date(value: str) -> str:
    """
    Назначение:
        DDMMYY -> YYYY-MM-DD. Пустой вход - ошибка вызывающей стороны.
    """
    dd = int(value[0:2])
    mm = int(value[2:4])
    yy = int(value[4:6])
    return _format_date(yy, mm, dd)


def ddmmyy_to_yymmdd(value: str) -> str:
    dd = int(value[0:2])
    mm = int(value[2:4])
    yy = int(value[4:6])
    return f"{yy:02d}{mm:02d}{dd:02d}"


def normalise_time(value: str | None) -> str | None:
    """
    Назначение:
        HHMM[H] -> HH:MM[:30].

    Поведение:
        - Суффикс H (полминуты) даёт ":30".
        - Для целых минут секунды не дописываются: "1030" -> "10:30".
    """
    if value is None:
        return None
    normal = f"{value[0:2]}:{value[2:4]}"
    if value[4:5] == "H":
        normal += ":30"
    return normal


def normalise_datetime(value: str | None) -> datetime | None:
    """
    Назначение:
        "YYYY-MM-DD HHMM[H]" -> datetime.
    """
    if value is None:
        return None
    date_part, _, time_part = value.partition(" ")
    normal = f"{date_part} {normalise_time(time_part.strip())}"
    fmt = "%Y-%m-%d %H:%M:%S" if normal.count(":") == 2 else "%Y-%m-%d %H:%M"
    return datetime.strptime(normal, fmt)


def normalise_allowance_time(value: str | None) -> int | None:
    """
    Назначение:
        Допуск в минутах (опционально с H = +30 секунд) -> секунды.
    """
    if value is None:
        return None
    text = value.strip()
    minutes = text[:-1] if text.endswith("H") else text
    seconds = int(minutes) * 60 if minutes else 0
    if text.endswith("H"):
        seconds += 30
    return seconds
