"""SQLite-backed key/value configuration for sit.

Holds repository settings such as ``user.name`` and ``user.email``. Lookups
of a missing key return the ``NOT_FOUND`` marker rather than raising.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, Optional

from sit.constants import CONFIG_DB
from sit.errors import SitError

DB_SCHEMA_VERSION = 1


class _NotFound:
    """Marker type for configuration keys that are not set."""

    _instance: Optional["_NotFound"] = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


class ConfigError(SitError):
    """Exception raised for configuration storage errors."""


class ConfigDB:
    """SQLite database manager for sit configuration.

    Attributes:
        db_path: Path to the SQLite database file
        conn: Active database connection (if open)

    Example:
        >>> with ConfigDB(Path(".sit")) as config:
        ...     config.set("user.name", "Ada")
        ...     config.get("user.name")
        'Ada'
    """

    def __init__(self, sit_dir: Path) -> None:
        self.sit_dir = Path(sit_dir)
        self.db_path = self.sit_dir / CONFIG_DB
        self.conn: Optional[sqlite3.Connection] = None

    def open(self) -> None:
        """Open database connection and make sure the schema exists.

        Raises:
            ConfigError: If connection fails
        """
        if self.conn is not None:
            return

        try:
            self.conn = sqlite3.connect(str(self.db_path), timeout=30.0)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=DELETE")
            self.init_schema()
        except sqlite3.Error as e:
            self.conn = None
            raise ConfigError(f"Failed to open config database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "ConfigDB":
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def init_schema(self) -> None:
        """Create the config and metadata tables. Safe to call repeatedly."""
        conn = self._require_open()
        try:
            with conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS config (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS metadata (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)
                conn.execute(
                    "INSERT OR IGNORE INTO metadata (key, value) VALUES ('schema_version', ?)",
                    (str(DB_SCHEMA_VERSION),),
                )
        except sqlite3.Error as e:
            raise ConfigError(f"Failed to initialize config schema: {e}") from e

    def get(self, key: str) -> Any:
        """Look up a value.

        Returns:
            The stored string, or NOT_FOUND
        """
        conn = self._require_open()
        try:
            row = conn.execute("SELECT value FROM config WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise ConfigError(f"Failed to read config: {e}") from e
        if row is None:
            return NOT_FOUND
        return row["value"]

    def set(self, key: str, value: str) -> None:
        conn = self._require_open()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO config (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise ConfigError(f"Failed to write config: {e}") from e

    def unset(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        conn = self._require_open()
        try:
            with conn:
                cursor = conn.execute("DELETE FROM config WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise ConfigError(f"Failed to write config: {e}") from e
        return cursor.rowcount > 0

    def items(self) -> Dict[str, str]:
        """All configured keys, sorted."""
        conn = self._require_open()
        try:
            rows = conn.execute("SELECT key, value FROM config ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise ConfigError(f"Failed to read config: {e}") from e
        return {row["key"]: row["value"] for row in rows}

    def get_schema_version(self) -> int:
        conn = self._require_open()
        row = conn.execute(
            "SELECT value FROM metadata WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return 0
        return int(row[0])

    def _require_open(self) -> sqlite3.Connection:
        if self.conn is None:
            raise ConfigError("Config database not open")
        return self.conn
