"""
DBTerminal: an interactive SQL terminal for SQLite databases with starred
(bookmarked) queries.
"""

from .config import StateStore
from .errors import (
    BookmarkError,
    DBTerminalError,
    ExecutionError,
    StartupError,
    StateFileError,
)
from .result import CommandOk, QueryResult
from .session import Bookmark, Session

__version__ = "1.0.0"

__all__ = [
    "Bookmark",
    "BookmarkError",
    "CommandOk",
    "DBTerminalError",
    "ExecutionError",
    "QueryResult",
    "Session",
    "StartupError",
    "StateFileError",
    "StateStore",
]
