"""
Outcome types produced by the executor and their JSON form.
"""
from __future__ import annotations

import json
import typing as t
from dataclasses import dataclass

from marketsql import scalars
from marketsql.constants import EXECUTED_MARKER
from marketsql.errors import StatementError

Row = t.Dict[str, scalars.Scalar]


@dataclass(frozen=True)
class RowSet:
    """Rows of a query, in the order the database returned them."""

    rows: tuple[Row, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def to_data(self) -> list[dict[str, t.Any]]:
        return [{col: scalars.to_json(v) for col, v in row.items()} for row in self.rows]


@dataclass(frozen=True)
class MutationSummary:
    """
    What a non‑query statement reported.  Exactly one of the two counters
    is set; when neither is, the statement is reported as ``"executed"``.
    """

    last_insert_id: int | None = None
    rows_affected: int | None = None

    def __post_init__(self) -> None:
        if self.last_insert_id is not None and self.rows_affected is not None:
            raise ValueError("MutationSummary holds one value, not both")

    @classmethod
    def pick(cls, last_insert_id: int | None, rows_affected: int | None) -> "MutationSummary":
        if last_insert_id is not None:
            return cls(last_insert_id=last_insert_id)
        if rows_affected is not None:
            return cls(rows_affected=rows_affected)
        return cls()

    @property
    def executed_only(self) -> bool:
        return self.last_insert_id is None and self.rows_affected is None

    def to_data(self) -> dict[str, int] | str:
        if self.last_insert_id is not None:
            return {"lastInsertId": self.last_insert_id}
        if self.rows_affected is not None:
            return {"rowsAffected": self.rows_affected}
        return EXECUTED_MARKER


Outcome = t.Union[RowSet, MutationSummary]


@dataclass(frozen=True)
class QueryResult:
    statement: str
    outcome: Outcome
    warnings: tuple[str, ...] = ()

    def to_data(self) -> t.Any:
        return self.outcome.to_data()

    def to_json(self) -> str:
        """
        JSON text of the outcome.  A value that cannot be encoded yields a
        ``"json error: …"`` placeholder instead of an exception.
        """
        try:
            return json.dumps(self.to_data(), allow_nan=False, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            return json.dumps(f"json error: {exc}", ensure_ascii=False)


@dataclass(frozen=True)
class ScriptOutcome:
    """Results of the statements that ran, plus the failure that stopped the script."""

    results: tuple[QueryResult, ...] = ()
    error: StatementError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
