"""TOML configuration loader for the receipt scanning service."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/136.0.0.0 Safari/537.36"
)


@dataclass
class PortalConfig:
    host: str = "suf.purs.gov.rs"
    specifications_url: str = "https://suf.purs.gov.rs/specifications"
    timeout: float = 15.0
    locale_cookie: str = "sr-Cyrl-RS"
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def origin(self) -> str:
        return f"https://{self.host}"


@dataclass
class DatabaseConfig:
    path: str = "~/.config/starspharm/loyalty.db"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class StarsConfig:
    portal: PortalConfig = field(default_factory=PortalConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> StarsConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path and log level can be supplied via environment
    variables when the file leaves them empty.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    prt = raw.get("portal", {})
    dbs = raw.get("database", {})
    lgg = raw.get("logging", {})

    defaults = PortalConfig()
    host = prt.get("host", defaults.host)

    # config file → environment variable → default
    db_path = (
        dbs.get("path", "")
        or os.environ.get("STARSPHARM_DB_PATH", "")
        or DatabaseConfig().path
    )
    log_level = (
        lgg.get("level", "")
        or os.environ.get("STARSPHARM_LOG_LEVEL", "")
        or LoggingConfig().level
    )

    return StarsConfig(
        portal=PortalConfig(
            host=host,
            specifications_url=prt.get(
                "specifications_url", f"https://{host}/specifications"
            ),
            timeout=float(prt.get("timeout", defaults.timeout)),
            locale_cookie=prt.get("locale_cookie", defaults.locale_cookie),
            user_agent=prt.get("user_agent", defaults.user_agent),
        ),
        database=DatabaseConfig(path=db_path),
        logging=LoggingConfig(level=log_level.upper()),
    )
