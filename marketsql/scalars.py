"""
Normalisation of driver values into a small, fixed set of scalar kinds.

Drivers hand back whatever Python type fits the column (``Decimal``,
``bytearray``, ``timedelta``, MySQL ``SET`` columns as ``set`` ...).  The
report only ever deals with the kinds below, which keeps its JSON stable.
"""
from __future__ import annotations

import base64
import datetime as dt
import enum
import typing as t
from decimal import Decimal

from marketsql.errors import ScalarError

Scalar = t.Union[None, bool, int, float, str, bytes, dt.datetime]


class ScalarKind(enum.Enum):
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BOOLEAN = "boolean"
    BINARY = "binary"
    TIMESTAMP = "timestamp"


def kind_of(value: Scalar) -> ScalarKind:
    if value is None:
        return ScalarKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ScalarKind.BOOLEAN
    if isinstance(value, int):
        return ScalarKind.INTEGER
    if isinstance(value, float):
        return ScalarKind.FLOAT
    if isinstance(value, str):
        return ScalarKind.TEXT
    if isinstance(value, bytes):
        return ScalarKind.BINARY
    if isinstance(value, dt.datetime):
        return ScalarKind.TIMESTAMP
    raise ScalarError(f"unsupported scalar type {type(value).__name__}")


def coerce(value: t.Any) -> Scalar:
    """
    Map a raw driver value onto one of the :class:`ScalarKind` types.

    Raises :class:`ScalarError` for values with no sensible mapping.
    """
    if value is None or isinstance(value, (bool, int, float, str, bytes, dt.datetime)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if isinstance(value, dt.timedelta):
        return str(value)
    if isinstance(value, dt.time):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(str(v) for v in value))
    raise ScalarError(f"cannot decode value of type {type(value).__name__}")


def to_json(value: Scalar) -> t.Any:
    """Return a JSON‑compatible form of *value*."""
    kind = kind_of(value)
    if kind is ScalarKind.BINARY:
        return base64.b64encode(value).decode("ascii")
    if kind is ScalarKind.TIMESTAMP:
        return value.isoformat()
    return value
