from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterable, Iterator


class SqliteEngine:
    """
    Назначение/ответственность:
        Обёртка над sqlite3.Connection для хранилища расписаний.

    Инварианты/гарантии:
        - Импорт CIF целиком выполняется в одной транзакции transaction().
        - Транзакция берёт блокировку записи сразу (BEGIN IMMEDIATE): второй
          параллельный импорт ждёт busy_timeout и падает до чтения файла,
          а не посреди применения записей.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def execute(self, sql: str, params: tuple | dict | None = None) -> sqlite3.Cursor:
        if params is None:
            return self.conn.execute(sql)
        return self.conn.execute(sql, params)

    def insert_rows(self, sql: str, rows: Iterable[dict]) -> int:
        """
        Назначение:
            Пакетная вставка буфера записей одним executemany.

        Выходные данные:
            int
                Число вставленных строк.
        """
        cursor = self.conn.executemany(sql, rows)
        return max(cursor.rowcount, 0)

    def fetchone(self, sql: str, params: tuple | dict | None = None) -> sqlite3.Row | None:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple | dict | None = None) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.conn.in_transaction:
            raise sqlite3.OperationalError("Store transaction is already open")
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield
            self.conn.commit()
        except BaseException:
            if self.conn.in_transaction:
                self.conn.rollback()
            raise
