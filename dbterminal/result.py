"""
dbterminal/result.py

Result objects returned by Session.execute(), plus the text rendering used
for result sets.

The session returns one of:
- CommandOk: for statements that do not produce a result set
- QueryResult: for statements that do (SELECT, PRAGMA, RETURNING, ...)

Rendering format:
    col_a | col_b
    -------------
    1 | NULL
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

SEPARATOR = " | "
NULL_TOKEN = "NULL"


@dataclass(frozen=True)
class CommandOk:
    """
    Represents successful execution of a statement without a result set.

    Attributes:
        rows_affected: Row count reported by SQLite (-1 when not applicable).
    """
    rows_affected: int = -1


@dataclass(frozen=True)
class QueryResult:
    """
    Represents a result set that was printed.

    Attributes:
        columns: Output column names in order.
        row_count: Number of data rows printed.
    """
    columns: list[str]
    row_count: int


def format_value(value: Any) -> str:
    """Render one field: NULL for None, str() for everything else."""
    if value is None:
        return NULL_TOKEN
    return str(value)


def format_row(values: Iterable[Any]) -> str:
    """Join rendered fields with the column separator."""
    return SEPARATOR.join(format_value(v) for v in values)


def format_header(columns: list[str]) -> tuple[str, str]:
    """
    Build the header line and the dash rule underneath it.

    Args:
        columns: Column names.

    Returns:
        (header, rule) where the rule is as long as the header.
    """
    header = SEPARATOR.join(columns)
    return header, "-" * len(header)
