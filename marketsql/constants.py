DEFAULT_CREDS_FILE = "creds.json"
DEFAULT_SQL_FILE = "query.sql"
DEFAULT_OUT_FILE = "out"
DEFAULT_PORT = 3306
DEFAULT_SSLMODE = "prefer"

# Block that applies to every market without a block of its own
ALL_MARKETS = "ALL"

VERBATIM_MARKER = "$$"
STATEMENT_SEPARATOR = ";"

EXECUTED_MARKER = "executed"
