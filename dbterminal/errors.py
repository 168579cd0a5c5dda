"""
dbterminal/errors.py

Centralized exception types for DBTerminal.

This module defines:
- A common base exception for all terminal errors
- Specialized error types for the working database, the bookmark database
  and the persisted state files
"""

from __future__ import annotations


class DBTerminalError(Exception):
    """
    Base class for all DBTerminal errors.

    Catching this exception allows the REPL to report every session/state
    failure without accidentally swallowing unrelated system exceptions.
    """


class StartupError(DBTerminalError):
    """
    Raised when the terminal cannot start.

    Examples:
      - Working or bookmark database cannot be opened
      - No working database path given and none could be read interactively
    """


class ExecutionError(DBTerminalError):
    """
    Raised when a statement fails on the working database.

    Covers both preparation failures (malformed SQL, missing table) and
    failures while fetching rows of a result set.
    """


class BookmarkError(DBTerminalError):
    """Raised when the bookmark database rejects a read or write."""


class StateFileError(DBTerminalError):
    """
    Raised when a persisted state file cannot be read or written.

    Args:
        message: Human readable explanation.
        path: File that failed, if known.
    """

    def __init__(self, message: str, path: object | None = None):
        self.message = message
        self.path = path
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message} ({self.path})"
