from __future__ import annotations

import uuid
from datetime import datetime, timezone


def generate_run_id(now: datetime | None = None) -> str:
    """
    Назначение:
        Сгенерировать run_id для запуска команды (имя лога и отчёта).

    Выходные данные:
        str
            "<UTC-время>-<8 hex>", например 20240101T063000Z-1f3a9c2b.
            Отчёты последовательных импортов сортируются по времени запуска.
    """
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"{stamp:%Y%m%dT%H%M%SZ}-{uuid.uuid4().hex[:8]}"
