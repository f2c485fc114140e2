from __future__ import annotations

from datetime import date, timedelta

# Позиции маски CIF (пн..вс) -> номер дня недели, где воскресенье = 0
MASK_TO_WEEKDAY = (1, 2, 3, 4, 5, 6, 0)


def mask_to_weekdays(day_mask: str) -> set[int]:
    return {MASK_TO_WEEKDAY[pos] for pos, flag in enumerate(day_mask[:7]) if flag == "1"}


def _weekday_number(value: date) -> int:
    # date.weekday(): пн=0..вс=6 -> пн=1..сб=6, вс=0
    return (value.weekday() + 1) % 7


def date_range_to_list(start_date: str, end_date: str, day_mask: str) -> list[str]:
    """
    Назначение:
        Разворачивает диапазон дат по маске дней недели.

    Входные данные:
        start_date, end_date: str
            YYYY-MM-DD, обе границы включительно.
        day_mask: str
            7 символов '0'/'1', первая позиция - понедельник.

    Выходные данные:
        list[str]
            Даты YYYY-MM-DD по возрастанию. start_date > end_date -> [].
    """
    weekdays = mask_to_weekdays(day_mask)
    current = date.fromisoformat(start_date)
    range_end = date.fromisoformat(end_date)

    dates: list[str] = []
    while current <= range_end:
        if _weekday_number(current) in weekdays:
            dates.append(current.isoformat())
        current += timedelta(days=1)
    return dates
