"""
marketsql – run one SQL script against many market databases.
"""
from marketsql.executor import execute
from marketsql.splitter import split

__version__ = "0.1.0"

__all__ = ["execute", "split", "__version__"]
