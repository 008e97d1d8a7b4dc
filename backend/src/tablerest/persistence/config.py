"""Database URL handling and adapter factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

if TYPE_CHECKING:
    from tablerest.persistence.adapter import DatabaseAdapter

DEFAULT_URL = "sqlite:///tablerest.db"

# URL scheme (driver suffix stripped) -> adapter dialect
_DIALECTS = {
    "sqlite": "sqlite",
    "postgresql": "postgresql",
    "postgres": "postgresql",
}


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the target database lives.

    Accepts sqlite:///path, postgresql://... and postgres://... URLs.
    A driver suffix such as postgresql+psycopg:// is tolerated.
    """

    url: str

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """DATABASE_URL wins, then TABLEREST_DB_PATH, then the local default."""
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url)

        db_path = os.environ.get("TABLEREST_DB_PATH")
        if db_path:
            return cls(url=f"sqlite:///{db_path}")

        return cls(url=DEFAULT_URL)

    @property
    def dialect(self) -> str | None:
        scheme = urlsplit(self.url).scheme.split("+", 1)[0].lower()
        return _DIALECTS.get(scheme)

    @property
    def is_sqlite(self) -> bool:
        return self.dialect == "sqlite"

    @property
    def is_postgresql(self) -> bool:
        return self.dialect == "postgresql"

    @property
    def sqlite_path(self) -> str:
        """Filesystem path of a sqlite:/// URL (":memory:" when empty)."""
        return self.url.split(":///", 1)[-1] or ":memory:"

    @property
    def redacted(self) -> str:
        """The URL with any password masked, safe to log."""
        parts = urlsplit(self.url)
        if not parts.password:
            return self.url
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return urlunsplit(parts._replace(netloc=netloc))


def create_adapter(config: DatabaseConfig) -> DatabaseAdapter:
    """Pick the adapter for the configured dialect. No connection is opened.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_sqlite:
        from tablerest.persistence.sqlite import SQLiteAdapter

        return SQLiteAdapter(config.sqlite_path)

    if config.is_postgresql:
        from tablerest.persistence.postgresql import PostgreSQLAdapter

        return PostgreSQLAdapter(config.url)

    raise ValueError(f"Unsupported database URL scheme: {config.redacted}")
