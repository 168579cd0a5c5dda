"""
dbterminal/config.py

Persisted terminal state stored as one-value text files.

Persistence:
- <state_dir>/lastSql.txt      last executed, trimmed, ';'-terminated SQL
- <state_dir>/defaultPath.txt  working database used when -db is omitted

Each file holds exactly one scalar and is overwritten whole on every write,
so the most recent write wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import StateFileError

log = logging.getLogger(__name__)

DEFAULT_STATE_DIR = Path("./DBTerminal")
LAST_SQL_FILE = "lastSql.txt"
DEFAULT_PATH_FILE = "defaultPath.txt"
STAR_DB_FILE = "dbterminal.db"


@dataclass
class StateStore:
    """
    Tiny key/value store backed by text files in a directory.

    Attributes:
        state_dir: Directory holding the state files (created on first write).
    """
    state_dir: Path = DEFAULT_STATE_DIR

    @property
    def last_sql_path(self) -> Path:
        return self.state_dir / LAST_SQL_FILE

    @property
    def default_path_path(self) -> Path:
        return self.state_dir / DEFAULT_PATH_FILE

    @property
    def star_db_path(self) -> Path:
        """Default location of the bookmark database."""
        return self.state_dir / STAR_DB_FILE

    def read_last_sql(self) -> str:
        """
        Return the last executed SQL.

        Returns:
            The stored text, or "" if nothing has been executed yet.

        Raises:
            StateFileError: if the file exists but cannot be read.
        """
        value = self._read(self.last_sql_path)
        return "" if value is None else value

    def write_last_sql(self, sql: str) -> None:
        """Overwrite the last executed SQL."""
        self._write(self.last_sql_path, sql)

    def read_default_path(self) -> str | None:
        """
        Return the persisted default working database path.

        Returns:
            The path, or None when the file is missing or blank.
        """
        value = self._read(self.default_path_path)
        if value is None or not value.strip():
            return None
        return value.strip()

    def write_default_path(self, path: str) -> None:
        """Overwrite the default working database path."""
        self._write(self.default_path_path, path)

    def _read(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateFileError(f"cannot read: {e.strerror or e}", path) from e
        except ValueError as e:
            raise StateFileError(f"cannot read: {e}", path) from e

    def _write(self, path: Path, value: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(value, encoding="utf-8")
        except OSError as e:
            raise StateFileError(f"cannot write: {e.strerror or e}", path) from e
        except ValueError as e:
            raise StateFileError(f"cannot write: {e}", path) from e
        log.debug("wrote %s (%d chars)", path, len(value))
