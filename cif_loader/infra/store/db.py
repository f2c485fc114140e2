from __future__ import annotations

import sqlite3
from pathlib import Path

DB_FILE_NAME = "timetable.sqlite3"


def getDbPath(dbDir: str | Path) -> str:
    """
    Возвращает путь к файлу хранилища в указанном каталоге.
    """
    return str(Path(dbDir) / DB_FILE_NAME)


def openDb(dbPath: str) -> sqlite3.Connection:
    """
    Открывает/создаёт SQLite БД с нужными PRAGMA/timeout.

    isolation_level=None: транзакции открываются явно через SqliteEngine.transaction().
    """
    Path(dbPath).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(dbPath, timeout=5.0, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute("PRAGMA busy_timeout = 5000")
    return conn
