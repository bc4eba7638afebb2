from __future__ import annotations
import logging
import typing as t
from dataclasses import dataclass

import mysql.connector

from marketsql.config import Market
from marketsql.errors import DatabaseError, RowDecodeError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Summary:
    """What the driver knows about a statement that returned no rows."""

    last_insert_id: int | None = None
    rows_affected: int | None = None


def connect(market: Market):
    """
    Open a connection to *market* with autocommit off.  Errors (bad
    credentials, network failure, unknown database) surface as
    :class:`DatabaseError`.
    """
    log.debug("connecting to market %s at %s:%s", market.name, market.host, market.port)
    try:
        return mysql.connector.connect(**market.dsn(), autocommit=False)
    except mysql.connector.Error as exc:
        raise DatabaseError(str(exc)) from exc


def _fetch_rows(cur) -> list[tuple | RowDecodeError]:
    # A buffered cursor knows its row count up front; without one we stop at
    # the first undecodable row since the cursor position is then unknown.
    total = cur.rowcount if cur.rowcount is not None and cur.rowcount >= 0 else None
    rows: list[tuple | RowDecodeError] = []
    row_no = 0
    while total is None or row_no < total:
        row_no += 1
        try:
            row = cur.fetchone()
        except (ValueError, TypeError) as exc:
            log.warning("rows scan error: row %d: %s", row_no, exc)
            rows.append(RowDecodeError(f"row {row_no}: {exc}"))
            if total is None:
                break
            continue
        if row is None:
            break
        rows.append(row)
    return rows


class Transaction:
    """
    One open transaction on a DB‑API connection.

    Used as a context manager it guarantees the transaction is finished: if
    the block exits while neither :meth:`commit` nor :meth:`rollback` has
    run, the transaction is rolled back.
    """

    def __init__(self, conn) -> None:
        self._conn = conn
        self.finished: bool = False

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.finished:
            return
        try:
            self.rollback()
        except DatabaseError as rb_exc:
            if exc is None:
                raise
            log.error("rollback after %s failed: %s", exc_type.__name__, rb_exc)

    def begin(self) -> "Transaction":
        try:
            self._conn.start_transaction()
        except mysql.connector.Error as exc:
            raise DatabaseError(str(exc)) from exc
        return self

    def query(self, sql: str) -> tuple[list[str], t.Iterator[tuple | RowDecodeError]]:
        """
        Run a row‑producing statement; return its column names and rows.

        Rows are fetched one at a time.  A row the driver cannot convert
        (e.g. text that is invalid in the connection charset) shows up as a
        :class:`RowDecodeError` in place of the row; driver errors abort.
        """
        rows: list[tuple | RowDecodeError] = []
        try:
            with self._conn.cursor(buffered=True) as cur:
                cur.execute(sql)
                columns = [d[0] for d in cur.description or ()]
                if cur.description:
                    rows = _fetch_rows(cur)
        except mysql.connector.Error as exc:
            raise DatabaseError(str(exc)) from exc
        return columns, iter(rows)

    def execute(self, sql: str) -> Summary:
        """Run a statement for its side effects."""
        try:
            with self._conn.cursor(buffered=True) as cur:
                cur.execute(sql)
                last_id = cur.lastrowid
                count = cur.rowcount
        except mysql.connector.Error as exc:
            raise DatabaseError(str(exc)) from exc

        # 0 means no AUTO_INCREMENT value was generated; -1 means unknown
        return Summary(
            last_insert_id=last_id or None,
            rows_affected=count if count is not None and count >= 0 else None,
        )

    def commit(self) -> None:
        self.finished = True
        try:
            self._conn.commit()
        except mysql.connector.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def rollback(self) -> None:
        self.finished = True
        try:
            self._conn.rollback()
        except mysql.connector.Error as exc:
            raise DatabaseError(str(exc)) from exc
