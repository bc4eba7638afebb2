"""
Turn market reports into the output file: a rich table or JSON.
"""
from __future__ import annotations

import json
import typing as t

from rich.console import Console
from rich.table import Table

from marketsql.runner import MarketReport

NO_STATEMENTS = "no statements executed"


def _result_text(qr) -> str:
    text = qr.to_json()
    if qr.warnings:
        text += "\n" + "\n".join(f"warning: {w}" for w in qr.warnings)
    return text


def report_rows(reports: t.Iterable[MarketReport]) -> list[tuple[str, str, str]]:
    """
    Flatten *reports* into ``(market, statement, result)`` rows.  Every
    market yields at least one row.
    """
    rows: list[tuple[str, str, str]] = []
    for rep in reports:
        if rep.error is not None:
            rows.append((rep.market, "", rep.error))
            continue
        if not rep.results:
            rows.append((rep.market, "", NO_STATEMENTS))
            continue
        for qr in rep.results:
            rows.append((rep.market, qr.statement, _result_text(qr)))
    return rows


def render_table(reports: t.Iterable[MarketReport], fh: t.TextIO) -> None:
    table = Table(show_lines=True)
    table.add_column("Market", justify="left", no_wrap=True)
    table.add_column("Query", justify="left", overflow="fold")
    table.add_column("Result", justify="left", overflow="fold")
    for row in report_rows(reports):
        table.add_row(*row)

    # Wide enough that statements are not folded into unreadable slivers
    console = Console(file=fh, width=160, no_color=True, highlight=False, soft_wrap=False)
    console.print(table)


def render_json(reports: t.Iterable[MarketReport], fh: t.TextIO) -> None:
    items: list[dict[str, t.Any]] = []
    for rep in reports:
        if rep.error is not None or not rep.results:
            items.append(
                {
                    "market": rep.market,
                    "stmt": "",
                    "data": None if rep.error else NO_STATEMENTS,
                    "error": rep.error,
                    "warnings": [],
                }
            )
            continue
        for qr in rep.results:
            items.append(
                {
                    "market": rep.market,
                    "stmt": qr.statement,
                    "data": json.loads(qr.to_json()),
                    "error": None,
                    "warnings": list(qr.warnings),
                }
            )
    json.dump(items, fh, indent=2, ensure_ascii=False)
    fh.write("\n")
