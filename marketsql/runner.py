from __future__ import annotations
import contextlib
import enum
import logging
import typing as t
from dataclasses import dataclass, field

from marketsql import driver
from marketsql.config import Market
from marketsql.errors import DatabaseError
from marketsql.executor import execute
from marketsql.markets import sql_for_market
from marketsql.results import QueryResult
from marketsql.splitter import split

log = logging.getLogger(__name__)


class RunState(enum.Enum):
    IDLE = "idle"
    SPLITTING = "splitting"
    EXECUTING = "executing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled back"


@dataclass
class MarketReport:
    market: str
    state: RunState = RunState.IDLE
    results: list[QueryResult] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_market(
    market: Market,
    blocks: dict[str, str],
    *,
    commit: bool = False,
    connect: t.Callable[[Market], t.Any] | None = None,
) -> MarketReport:
    """
    Run the SQL block that applies to *market* in one transaction.

    The transaction is committed only when every statement succeeded and
    *commit* is true; in every other case it is rolled back.  Failures are
    returned as the report's ``error`` text, never raised.
    """
    report = MarketReport(market.name)

    sql_text = sql_for_market(blocks, market.name)
    if sql_text is None:
        report.error = "no SQL defined for this market"
        return report

    connect = connect or driver.connect
    try:
        conn = connect(market)
    except DatabaseError as exc:
        report.error = f"connect error: {exc}"
        return report

    with contextlib.closing(conn):
        try:
            tx = driver.Transaction(conn).begin()
        except DatabaseError as exc:
            report.error = f"begin error: {exc}"
            return report

        with tx:
            report.state = RunState.SPLITTING
            statements = split(sql_text)

            report.state = RunState.EXECUTING
            log.info("market %s: executing %d statements", market.name, len(statements))
            try:
                outcome = execute(tx, statements)
                failure: Exception | None = outcome.error
            except Exception as exc:
                # every market gets a report, whatever the executor raises
                log.exception("market %s: unexpected error during execution", market.name)
                failure = exc

            if failure is not None:
                msg = f"exec error: {failure}"
                try:
                    tx.rollback()
                except DatabaseError as exc:
                    msg += f"; rollback error: {exc}"
                report.state = RunState.ROLLED_BACK
                report.error = msg
                return report

            try:
                if commit:
                    tx.commit()
                    report.state = RunState.COMMITTED
                else:
                    tx.rollback()
                    report.state = RunState.ROLLED_BACK
            except DatabaseError as exc:
                report.state = RunState.ROLLED_BACK
                report.error = f"{'commit' if commit else 'rollback'} error: {exc}"
                return report

    report.results = list(outcome.results)
    return report


def run_all(
    markets: t.Iterable[Market],
    blocks: dict[str, str],
    *,
    commit: bool = False,
    connect: t.Callable[[Market], t.Any] | None = None,
) -> list[MarketReport]:
    """Run every market in order; one report per market."""
    return [run_market(m, blocks, commit=commit, connect=connect) for m in markets]
