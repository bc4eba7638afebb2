"""
Execute split statements inside an open transaction.

Statements starting with ``SELECT`` are run as queries and their rows are
collected; everything else is run as a command and summarised.  The first
failing statement stops the script.  Values that cannot be decoded only
produce warnings on the statement's result.
"""
from __future__ import annotations

import logging
import re
import typing as t

from marketsql import scalars
from marketsql.errors import DatabaseError, RowDecodeError, ScalarError, StatementError
from marketsql.results import MutationSummary, QueryResult, Row, RowSet, ScriptOutcome

log = logging.getLogger(__name__)

_SELECT_RE = re.compile(r"^\s*SELECT", re.IGNORECASE)


def is_query(stmt: str) -> bool:
    """True if *stmt* is treated as row‑producing."""
    return _SELECT_RE.match(stmt) is not None


def _decode_row(
    columns: list[str], raw: t.Sequence[t.Any], row_no: int, warnings: list[str]
) -> Row:
    row: Row = {}
    if len(raw) != len(columns):
        msg = f"row {row_no}: expected {len(columns)} values, got {len(raw)}"
        log.warning("rows scan error: %s", msg)
        warnings.append(msg)

    for i, col in enumerate(columns):
        value = raw[i] if i < len(raw) else None
        try:
            row[col] = scalars.coerce(value)
        except ScalarError as exc:
            msg = f"row {row_no}, column {col!r}: {exc}"
            log.warning("rows scan error: %s", msg)
            warnings.append(msg)
            row[col] = None
    return row


def _run_query(tx, stmt: str) -> tuple[RowSet, tuple[str, ...]]:
    columns, raw_rows = tx.query(stmt)
    warnings: list[str] = []
    rows: list[Row] = []
    for n, raw in enumerate(raw_rows, 1):
        if isinstance(raw, RowDecodeError):
            # skipped; the driver already logged it
            warnings.append(str(raw))
            continue
        rows.append(_decode_row(columns, raw, n, warnings))
    return RowSet(tuple(rows)), tuple(warnings)


def _run_command(tx, stmt: str) -> MutationSummary:
    summary = tx.execute(stmt)
    return MutationSummary.pick(summary.last_insert_id, summary.rows_affected)


def execute(tx, statements: t.Iterable[str]) -> ScriptOutcome:
    """
    Run *statements* in order on *tx* and collect one :class:`QueryResult`
    per statement.

    Stops at the first statement the database rejects and returns the
    results gathered so far together with a :class:`StatementError`.  The
    transaction is left open; finishing it is the caller's job.
    """
    results: list[QueryResult] = []
    for stmt in statements:
        stmt = stmt.strip()
        if not stmt:
            continue

        warnings: tuple[str, ...] = ()
        try:
            if is_query(stmt):
                outcome, warnings = _run_query(tx, stmt)
            else:
                outcome = _run_command(tx, stmt)
        except DatabaseError as exc:
            log.info("statement %d failed: %s", len(results) + 1, exc)
            return ScriptOutcome(tuple(results), StatementError(stmt, exc))

        log.debug("statement %d ok: %s", len(results) + 1, stmt)
        results.append(QueryResult(stmt, outcome, warnings))
    return ScriptOutcome(tuple(results), None)
