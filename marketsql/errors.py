from __future__ import annotations


class MarketSQLError(RuntimeError):
    """Base class for every error raised by marketsql."""


class ConfigError(MarketSQLError):
    """Raised for any user‑visible configuration problem."""


class DatabaseError(MarketSQLError):
    """A driver failure: connect, begin, query, exec, commit or rollback."""


class StatementError(DatabaseError):
    """
    One statement of a script failed.  Carries the statement text so the
    report can say *where* the script stopped.
    """

    def __init__(self, statement: str, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.statement: str = statement
        self.cause: BaseException = cause


class ScalarError(ValueError):
    """A driver value that does not fit any supported scalar kind."""


class RowDecodeError(ScalarError):
    """The driver could not convert one row of an otherwise good result."""
