#!/usr/bin/env python3
"""
marketsql – run one SQL file against every configured market.

• Markets come from a JSON/YAML credentials file (``--creds``).
• ``-- <market>`` comment lines in the SQL file start a block for that
  market; lines before the first tag apply to ``ALL`` markets.
• Each market runs in its own transaction, rolled back unless ``--commit``.
"""
from __future__ import annotations

import logging
import pathlib
import sys

import click

from marketsql import __version__
from marketsql.config import ConfigError, load
from marketsql.constants import DEFAULT_CREDS_FILE, DEFAULT_OUT_FILE, DEFAULT_SQL_FILE
from marketsql.markets import read_market_sql, sql_for_market
from marketsql.report import render_json, render_table
from marketsql.runner import run_all
from marketsql.splitter import split


def _fail(msg: str) -> None:
    click.echo(msg, err=True)
    sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="debug logging on stderr")
def main(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
def version():
    click.echo(__version__)


@main.command("run")
@click.option("--creds", "creds_path", type=click.Path(), default=DEFAULT_CREDS_FILE,
              help="JSON/YAML file with market credentials")
@click.option("--sql", "sql_path", type=click.Path(), default=DEFAULT_SQL_FILE,
              help="SQL file to execute on each market")
@click.option("--out", "out_path", default=DEFAULT_OUT_FILE,
              help="output file for the results ('-' for stdout)")
@click.option("--commit/--rollback", default=False,
              help="commit transactions instead of rolling them back")
@click.option("--format", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.option("-m", "--market", "only", multiple=True, help="run only these markets")
@click.option("--dry-run", is_flag=True, help="print the statements, do not connect")
def run_cmd(creds_path, sql_path, out_path, commit, fmt, only, dry_run):
    try:
        markets = load(creds_path)
        blocks = read_market_sql(sql_path)
    except ConfigError as exc:
        _fail(f"Config error: {exc}")

    if only:
        unknown = set(only) - {m.name for m in markets}
        if unknown:
            _fail(f"Config error: unknown market(s) {', '.join(sorted(unknown))}")
        markets = [m for m in markets if m.name in only]

    if dry_run:
        for m in markets:
            sql_text = sql_for_market(blocks, m.name)
            click.echo(f"▶ {m.name}")
            if sql_text is None:
                click.echo("   no SQL defined for this market")
                continue
            for stmt in split(sql_text):
                click.echo(f"   {stmt};")
        click.echo("\n-- DRY‑RUN complete (no changes executed)")
        return

    reports = run_all(markets, blocks, commit=commit)

    render = render_json if fmt == "json" else render_table
    if out_path == "-":
        render(reports, sys.stdout)
    else:
        try:
            with pathlib.Path(out_path).open("w", encoding="utf-8") as fh:
                render(reports, fh)
        except OSError as exc:
            _fail(f"Cannot write output file {out_path}: {exc}")
        click.echo(f"✅  Wrote {len(reports)} market report(s) to {out_path}")

    failed = [r.market for r in reports if not r.ok]
    if failed:
        click.echo(f"Failed markets: {', '.join(failed)}", err=True)


@main.command("split")
@click.argument("sql_file", type=click.Path(exists=True, dir_okay=False))
def split_cmd(sql_file):
    """Print the statements of SQL_FILE as they would be executed."""
    text = pathlib.Path(sql_file).read_text(encoding="utf-8")
    for stmt in split(text):
        click.echo(f"{stmt};\n")


if __name__ == "__main__":
    main()
