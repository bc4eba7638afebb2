"""
Assign blocks of a SQL file to markets by comment tags.

    SELECT 1;          -- belongs to ALL
    -- de
    UPDATE t SET x=1;  -- belongs to "de"
    -- fr
    ...

Any comment line with text switches the current market, so ordinary prose
comments must be written as a bare ``--`` line or inline after SQL.
"""
from __future__ import annotations

import pathlib

from marketsql.constants import ALL_MARKETS
from marketsql.errors import ConfigError


def parse_market_sql(text: str) -> dict[str, str]:
    blocks: dict[str, list[str]] = {}
    current = ALL_MARKETS

    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith("--"):
            tag = stripped[2:].strip()
            if tag:
                current = tag
                continue
        blocks.setdefault(current, []).append(line)

    return {market: "\n".join(lines) for market, lines in blocks.items()}


def read_market_sql(path: pathlib.Path | str) -> dict[str, str]:
    sql_path = pathlib.Path(path)
    try:
        text = sql_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read SQL file {sql_path}: {exc}") from exc
    return parse_market_sql(text)


def sql_for_market(blocks: dict[str, str], name: str) -> str | None:
    """The market's own block, else the ALL block, else ``None``."""
    if name in blocks:
        return blocks[name]
    return blocks.get(ALL_MARKETS)
