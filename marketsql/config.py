from __future__ import annotations
import os
import pathlib
import typing as t
import yaml

from marketsql.constants import DEFAULT_CREDS_FILE, DEFAULT_PORT, DEFAULT_SSLMODE
from marketsql.errors import ConfigError

_DEFAULT_PATH = pathlib.Path(DEFAULT_CREDS_FILE)
_REQUIRED = ("name", "host", "user", "password", "dbname")

# libpq-style sslmode names mapped onto mysql-connector TLS options.  allow and
# prefer keep the connector default: TLS when the server offers it.
_SSLMODES: dict[str, dict[str, t.Any]] = {
    "disable": {"ssl_disabled": True},
    "allow": {},
    "prefer": {},
    "require": {"ssl_disabled": False},
    "verify-ca": {"ssl_disabled": False, "ssl_verify_cert": True},
    "verify-full": {"ssl_disabled": False, "ssl_verify_cert": True, "ssl_verify_identity": True},
}


class Market:
    """
    A thin value‑object holding the attributes required to open one market's
    database connection.  Nothing here talks to the database.
    """

    def __init__(self, d: dict[str, t.Any]) -> None:
        missing = [key for key in _REQUIRED if key not in d]
        if missing:
            label = d.get("name", "<unnamed>")
            raise ConfigError(f"Market {label!r} is missing {', '.join(missing)}")

        self.name: str = str(d["name"])
        self.host: str = d["host"]
        self.port: int = int(d.get("port") or DEFAULT_PORT)
        self.user: str = d["user"]
        self.dbname: str = d["dbname"]
        self.sslmode: str = d.get("sslmode") or DEFAULT_SSLMODE
        self.sslrootcert: str | None = d.get("sslrootcert")
        if self.sslmode not in _SSLMODES:
            raise ConfigError(
                f"Market {self.name!r}: unknown sslmode {self.sslmode!r} "
                f"(expected one of {', '.join(_SSLMODES)})"
            )
        if self.sslmode.startswith("verify-") and not self.sslrootcert:
            raise ConfigError(f"Market {self.name!r}: sslmode {self.sslmode} needs sslrootcert")

        # Allow `${ENV_VAR}` syntax for secrets
        raw_pwd: str = str(d["password"])
        self.password: str = (
            os.getenv(raw_pwd[2:-1], "") if raw_pwd.startswith("${") else raw_pwd
        )

    def __repr__(self) -> str:
        return f"Market({self.name!r}, {self.host}:{self.port}/{self.dbname})"

    def dsn(self) -> dict[str, t.Any]:
        """Return kwargs that mysql‑connector understands."""
        kwargs: dict[str, t.Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.dbname,
        }
        kwargs.update(_SSLMODES[self.sslmode])
        if self.sslmode.startswith("verify-"):
            kwargs["ssl_ca"] = self.sslrootcert
        return kwargs


def load(path: pathlib.Path | str | None = None) -> list[Market]:
    """
    Parse *path* (or the default ``creds.json``) and return its markets in
    file order.  The file may be JSON or YAML.
    """
    cfg_file = pathlib.Path(path) if path else _DEFAULT_PATH
    if not cfg_file.exists():
        raise ConfigError(f"Credentials file {cfg_file} not found.")

    try:
        with cfg_file.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse {cfg_file}: {exc}") from exc

    entries = raw.get("markets") if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        raise ConfigError(f"No `markets` list defined in {cfg_file}")

    markets: list[Market] = []
    seen: set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"Market entries in {cfg_file} must be mappings")
        market = Market(entry)
        if market.name in seen:
            raise ConfigError(f"Market {market.name!r} defined twice in {cfg_file}")
        seen.add(market.name)
        markets.append(market)
    return markets
