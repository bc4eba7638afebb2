"""
Split a SQL script into individual statements.

Statements end at ``;``.  Text between a pair of ``$$`` markers is copied
verbatim, so procedural bodies such as

    CREATE FUNCTION f() RETURNS int AS $$ BEGIN RETURN 1; END; $$ LANGUAGE plpgsql;

come out as a single statement.  The marker only toggles state; marker
parity is not validated and an unclosed ``$$`` swallows the rest of the
script.
"""
from __future__ import annotations

from typing import Generator

from marketsql.constants import STATEMENT_SEPARATOR, VERBATIM_MARKER


def iter_statements(script: str) -> Generator[str, None, None]:
    in_verbatim = False
    buf: list[str] = []
    i, n = 0, len(script)

    while i < n:
        if script.startswith(VERBATIM_MARKER, i):
            in_verbatim = not in_verbatim
            buf.append(VERBATIM_MARKER)
            i += len(VERBATIM_MARKER)
            continue

        ch = script[i]
        i += 1
        if ch == STATEMENT_SEPARATOR and not in_verbatim:
            stmt = "".join(buf).strip()
            if stmt:
                yield stmt
            buf.clear()
            continue
        buf.append(ch)

    stmt = "".join(buf).strip()
    if stmt:
        yield stmt


def split(script: str) -> list[str]:
    """Return the statements of *script* in order, without terminators."""
    return list(iter_statements(script))
