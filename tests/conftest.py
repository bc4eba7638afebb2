"""
In‑memory stand‑ins for a mysql‑connector connection.

A ``FakeConnection`` is scripted with a mapping ``statement -> response``
where a response is either
  • ``Rows(columns, rows)`` for a query; an exception among *rows* is
    raised when that row is fetched,
  • ``Done(lastrowid, rowcount)`` for a command, or
  • an exception instance to raise from ``cursor.execute``.
Unscripted statements behave like ``Done()``.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import mysql.connector
import pytest

from marketsql.config import Market


@dataclass
class Rows:
    columns: list[str]
    rows: list[tuple] = field(default_factory=list)


@dataclass
class Done:
    lastrowid: int | None = 0
    rowcount: int = -1


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.description = None
        self.lastrowid = None
        self.rowcount = -1
        self._rows: list[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def execute(self, sql, params=None):
        self.conn.executed.append(sql)
        resp = self.conn.script.get(sql, Done())
        if isinstance(resp, BaseException):
            raise resp
        if isinstance(resp, Rows):
            self.description = [(c, None) for c in resp.columns]
            self._rows = list(resp.rows)
            self.rowcount = len(self._rows)
        else:
            self.lastrowid = resp.lastrowid
            self.rowcount = resp.rowcount

    def fetchone(self):
        if not self._rows:
            return None
        row = self._rows.pop(0)
        if isinstance(row, BaseException):
            raise row
        return row

    def close(self):
        pass


class FakeConnection:
    def __init__(self, script=None, *, fail_begin=None, fail_commit=None, fail_rollback=None):
        self.script = script or {}
        self.executed: list[str] = []
        self.events: list[str] = []
        self.fail_begin = fail_begin
        self.fail_commit = fail_commit
        self.fail_rollback = fail_rollback

    def cursor(self, **_kwargs):
        return FakeCursor(self)

    def start_transaction(self):
        self.events.append("begin")
        if self.fail_begin:
            raise self.fail_begin

    def commit(self):
        self.events.append("commit")
        if self.fail_commit:
            raise self.fail_commit

    def rollback(self):
        self.events.append("rollback")
        if self.fail_rollback:
            raise self.fail_rollback

    def close(self):
        self.events.append("close")


def db_error(msg: str) -> mysql.connector.Error:
    return mysql.connector.errors.ProgrammingError(msg=msg)


@pytest.fixture
def market_factory():
    def make(name="de", **overrides):
        d = {
            "name": name,
            "host": "127.0.0.1",
            "port": 3306,
            "user": "report",
            "password": "secret",
            "dbname": "shop",
        }
        d.update(overrides)
        return Market(d)

    return make
