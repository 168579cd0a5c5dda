"""
dbterminal/session.py

Session Store: the two SQLite connections owned by a terminal process.

Responsibilities:
- Open the working database (the user's target) and the bookmark database.
- Create the bookmark table on first use.
- Execute arbitrary SQL on the working database and print result sets as
  ' | '-separated text.
- Provide the bookmark operations used by the REPL meta-commands.

Both connections run in autocommit mode; nothing here manages transactions
for the user. Use the session as a context manager so both connections are
released on every exit path.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from .errors import BookmarkError, ExecutionError, StartupError
from .result import CommandOk, QueryResult, format_header, format_row

log = logging.getLogger(__name__)

BOOKMARK_TABLE = "starList"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {BOOKMARK_TABLE} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content TEXT NOT NULL
)
"""


@dataclass(frozen=True)
class Bookmark:
    """A starred SQL statement and its display id."""
    id: int
    content: str


def split_statements(sql: str) -> list[str]:
    """
    Split SQL text into complete statements.

    A statement ends at a ';' that SQLite considers the end of a complete
    statement, so semicolons inside string literals, comments and trigger
    bodies do not split. Trailing text without a terminator is kept as a
    final statement. Empty statements (a lone ';') are dropped.

    Args:
        sql: One or more SQL statements.

    Returns:
        Statements in input order, stripped.
    """
    stmts: list[str] = []
    current = ""
    for ch in sql:
        current += ch
        if ch == ";" and sqlite3.complete_statement(current):
            stmt = current.strip()
            if stmt.rstrip(";").strip():
                stmts.append(stmt)
            current = ""
    tail = current.strip()
    if tail:
        stmts.append(tail)
    return stmts


def _connect(path: str | Path) -> sqlite3.Connection:
    try:
        conn = sqlite3.connect(str(path), isolation_level=None)
    except sqlite3.Error as e:
        raise StartupError(f"Connect to database failed: {path}: {e}") from e
    try:
        # sqlite opens lazily; read the header so a bad file fails here.
        conn.execute("PRAGMA schema_version").fetchone()
    except sqlite3.Error as e:
        conn.close()
        raise StartupError(f"Connect to database failed: {path}: {e}") from e
    log.debug("opened %s", path)
    return conn


@dataclass
class Session:
    """
    Long-lived connections for one terminal process.

    Attributes:
        db_path: Working database path as given by the user.
        db: Working database connection.
        star_db: Bookmark database connection.
    """
    db_path: str
    db: sqlite3.Connection
    star_db: sqlite3.Connection
    closed: bool = False

    @classmethod
    def open(cls, db_path: str | Path, star_db_path: str | Path) -> "Session":
        """
        Open both databases and make sure the bookmark table exists.

        Args:
            db_path: Working database file.
            star_db_path: Bookmark database file; its directory is created.

        Returns:
            Session instance.

        Raises:
            StartupError: if either database cannot be opened or prepared.
        """
        db = _connect(db_path)
        try:
            star_path = Path(star_db_path)
            try:
                star_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StartupError(f"Cannot create {star_path.parent}: {e}") from e
            star_db = _connect(star_path)
        except StartupError:
            db.close()
            raise

        session = cls(db_path=str(db_path), db=db, star_db=star_db)
        try:
            session.ensure_bookmark_schema()
        except BookmarkError as e:
            session.close()
            raise StartupError(str(e)) from e
        return session

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release both connections. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.db.close()
        self.star_db.close()
        log.debug("closed %s and bookmark database", self.db_path)

    # --------------------------
    # working database
    # --------------------------

    def execute(self, statement: str) -> list[CommandOk | QueryResult]:
        """
        Execute one or more statements on the working database.

        Result sets are printed as they are fetched: a header row, a dash
        rule as wide as the header, then one line per row.

        Args:
            statement: SQL text; may contain several ';'-separated statements.

        Returns:
            One result per statement, in order.

        Raises:
            ExecutionError: on the first failing statement or fetch. Output
                already printed for earlier rows/statements is kept.
        """
        results: list[CommandOk | QueryResult] = []
        try:
            stmts = split_statements(statement.strip())
        except ValueError as e:
            # NUL characters and lone surrogates never reach SQLite.
            raise ExecutionError(str(e)) from e
        for stmt in stmts:
            results.append(self._execute_one(stmt))
        return results

    def _execute_one(self, stmt: str) -> CommandOk | QueryResult:
        log.debug("execute: %s", stmt)
        try:
            cur = self.db.execute(stmt)
        except (sqlite3.Error, sqlite3.Warning, ValueError) as e:
            raise ExecutionError(str(e)) from e

        try:
            if cur.description is None:
                return CommandOk(rows_affected=cur.rowcount)

            columns = [d[0] for d in cur.description]
            if not columns:
                return QueryResult(columns=[], row_count=0)

            header, rule = format_header(columns)
            print(header)
            print(rule)

            count = 0
            try:
                for row in cur:
                    print(format_row(row))
                    count += 1
            except sqlite3.Error as e:
                raise ExecutionError(str(e)) from e
            return QueryResult(columns=columns, row_count=count)
        finally:
            cur.close()

    # --------------------------
    # bookmarks
    # --------------------------

    def ensure_bookmark_schema(self) -> None:
        """Create the bookmark table if it does not exist yet."""
        try:
            self.star_db.execute(_SCHEMA)
        except sqlite3.Error as e:
            raise BookmarkError(str(e)) from e

    def list_bookmarks(self) -> list[Bookmark]:
        """Return all bookmarks ordered by id."""
        try:
            rows = self.star_db.execute(
                f"SELECT id, content FROM {BOOKMARK_TABLE} ORDER BY id"
            ).fetchall()
        except sqlite3.Error as e:
            raise BookmarkError(str(e)) from e
        return [Bookmark(id=r[0], content=r[1]) for r in rows]

    def get_bookmark(self, bookmark_id: int) -> Bookmark | None:
        """Return the bookmark with this id, or None."""
        try:
            row = self.star_db.execute(
                f"SELECT id, content FROM {BOOKMARK_TABLE} WHERE id = ?", (bookmark_id,)
            ).fetchone()
        except (sqlite3.Error, OverflowError) as e:
            raise BookmarkError(str(e)) from e
        if row is None:
            return None
        return Bookmark(id=row[0], content=row[1])

    def add_bookmark(self, content: str) -> int:
        """
        Star a statement.

        Duplicates and empty text are accepted.

        Returns:
            The new bookmark id.
        """
        try:
            cur = self.star_db.execute(
                f"INSERT INTO {BOOKMARK_TABLE} (content) VALUES (?)", (content,)
            )
        except (sqlite3.Error, ValueError) as e:
            raise BookmarkError(str(e)) from e
        log.debug("starred #%d", cur.lastrowid)
        return cur.lastrowid

    def remove_bookmarks(self, content: str) -> int:
        """
        Delete every bookmark whose content equals `content`.

        Returns:
            Number of rows deleted (0 is not an error).
        """
        try:
            cur = self.star_db.execute(
                f"DELETE FROM {BOOKMARK_TABLE} WHERE content = ?", (content,)
            )
        except (sqlite3.Error, ValueError) as e:
            raise BookmarkError(str(e)) from e
        log.debug("unstarred %d row(s)", cur.rowcount)
        return cur.rowcount

    def zip_bookmarks(self) -> int:
        """
        Renumber bookmark ids to 1..n keeping their order, then reset the
        AUTOINCREMENT counter so the next bookmark gets n + 1.

        Ids are moved in ascending order, so each new id is either free or
        the row's own id.

        Returns:
            Number of bookmarks after renumbering.
        """
        conn = self.star_db
        try:
            conn.execute("BEGIN")
            try:
                ids = [r[0] for r in conn.execute(
                    f"SELECT id FROM {BOOKMARK_TABLE} ORDER BY id"
                )]
                for new_id, old_id in enumerate(ids, start=1):
                    if new_id != old_id:
                        conn.execute(
                            f"UPDATE {BOOKMARK_TABLE} SET id = ? WHERE id = ?",
                            (new_id, old_id),
                        )
                conn.execute(
                    "DELETE FROM sqlite_sequence WHERE name = ?", (BOOKMARK_TABLE,)
                )
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise BookmarkError(str(e)) from e
        log.debug("zipped %d bookmark(s)", len(ids))
        return len(ids)
