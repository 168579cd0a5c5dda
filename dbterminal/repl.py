"""
dbterminal/repl.py

Interactive REPL (Read-Eval-Print Loop) for DBTerminal.

Responsibilities:
- Read lines from stdin and accumulate SQL until the buffer ends with ';'.
- Execute completed statements on the working database and remember the
  last one in <state_dir>/lastSql.txt.
- Meta-commands, matched on the whole trimmed line, case-insensitively:
    - exit            leave the terminal
    - ls              list starred statements
    - star            star the last executed statement
    - unstar          remove every star equal to the last executed statement
    - zip             renumber stars 1..n
    - <integer>       recall a star into the buffer (replays it if it ends in ';')

Keywords win over SQL: a line consisting only of "ls" is always the command,
even in the middle of a multi-line statement.

Usage:
    dbterminal [-db path] [-stardb path]
If -db is omitted the persisted default path is used, asking for one the
first time.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

try:
    import readline  # noqa: F401
except ImportError:
    # readline is optional; if missing, REPL still works.
    readline = None  # type: ignore[assignment]

from .config import DEFAULT_STATE_DIR, StateStore
from .errors import DBTerminalError, StartupError, StateFileError
from .session import Session

log = logging.getLogger(__name__)

PROMPT = "SQL> "
PATH_PROMPT = "enter sql path: "

_INDEX_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class ReplContext:
    """
    Mutable state handed to every command handler.

    Attributes:
        session: Open Session (working + bookmark databases).
        state: Persisted last-SQL / default-path store.
        buffer: Pending SQL text; each input line is followed by one space.
    """
    session: Session
    state: StateStore
    buffer: str = ""


def parse_index(line: str) -> int | None:
    """Return the integer a line spells out in ASCII digits (blanks allowed), else None."""
    text = line.strip()
    if not _INDEX_RE.fullmatch(text):
        return None
    return int(text)


def cmd_ls(ctx: ReplContext) -> None:
    """
    Meta-command: print every bookmark as "<id>. <content>".

    Args:
        ctx: REPL context.
    """
    try:
        bookmarks = ctx.session.list_bookmarks()
    except DBTerminalError as e:
        print(f"Error: {e}")
        return

    if not bookmarks:
        print("no data")
        return
    for b in bookmarks:
        print(f"{b.id}. {b.content}")


def _last_sql(ctx: ReplContext) -> str | None:
    try:
        return ctx.state.read_last_sql()
    except StateFileError as e:
        print(f"Error reading last SQL: {e}")
        return None


def cmd_star(ctx: ReplContext) -> None:
    """Meta-command: star the last executed statement."""
    sql = _last_sql(ctx)
    if sql is None:
        return
    try:
        ctx.session.add_bookmark(sql)
    except DBTerminalError as e:
        print(f"Error: {e}")
        return
    print("starred")


def cmd_unstar(ctx: ReplContext) -> None:
    """
    Meta-command: delete every bookmark equal to the last executed statement.

    Nothing matching is still a success.
    """
    sql = _last_sql(ctx)
    if sql is None:
        return
    try:
        ctx.session.remove_bookmarks(sql)
    except DBTerminalError as e:
        print(f"Error: {e}")
        return
    print("success")


def cmd_zip(ctx: ReplContext) -> None:
    """Meta-command: compact bookmark ids."""
    try:
        ctx.session.zip_bookmarks()
    except DBTerminalError as e:
        print(f"Error: {e}")
        return
    print("zipped")


def cmd_recall(ctx: ReplContext, index: int) -> None:
    """
    Replace the buffer with bookmark `index`.

    Args:
        ctx: REPL context.
        index: Bookmark id typed by the user.
    """
    try:
        bookmark = ctx.session.get_bookmark(index)
    except DBTerminalError as e:
        print(f"Error: {e}")
        return

    if bookmark is None:
        print("no such index.")
        return

    print(f"{PROMPT}{bookmark.content}")
    ctx.buffer = bookmark.content


def flush_if_complete(ctx: ReplContext) -> bool:
    """
    Execute the buffer if its trimmed text ends with ';'.

    The statement is saved as last SQL even when it fails, so `star` can
    still pick it up.

    Args:
        ctx: REPL context.

    Returns:
        True if the buffer was executed and cleared.
    """
    sql = ctx.buffer.strip()
    if not sql.endswith(";"):
        return False

    try:
        ctx.session.execute(sql)
    except DBTerminalError as e:
        print(f"Execute error: {e}")
    except Exception as e:
        # Unexpected internal error; keep REPL alive but show message
        print(f"Internal error: {e}")

    try:
        ctx.state.write_last_sql(sql)
    except StateFileError as e:
        print(f"Error saving last SQL: {e}")

    ctx.buffer = ""
    return True


COMMANDS: dict[str, Callable[[ReplContext], None]] = {
    "ls": cmd_ls,
    "unstar": cmd_unstar,
    "star": cmd_star,
    "zip": cmd_zip,
}


def handle_line(ctx: ReplContext, line: str) -> bool:
    """
    Process one input line.

    Args:
        ctx: REPL context.
        line: Raw line without its newline.

    Returns:
        False when the terminal should stop, True otherwise.
    """
    keyword = line.strip().lower()
    if keyword == "exit":
        return False

    command = COMMANDS.get(keyword)
    if command is not None:
        command(ctx)
    else:
        index = parse_index(line)
        if index is not None:
            cmd_recall(ctx, index)
        else:
            ctx.buffer += line + " "

    flush_if_complete(ctx)
    return True


def repl(ctx: ReplContext, read_line: Callable[[str], str] = input) -> int:
    """
    Run the interactive loop until `exit` or end of input.

    Args:
        ctx: REPL context.
        read_line: Prompting line reader (input() by default).

    Returns:
        Process exit code (0 on normal exit).
    """
    print(f"Connect to database: {ctx.session.db_path}")
    print("In interactive mode now (Type 'exit' to leave)")

    while True:
        try:
            line = read_line(PROMPT)
        except EOFError:
            print()
            return 0
        except KeyboardInterrupt:
            # Clear current buffer on Ctrl+C
            print()
            ctx.buffer = ""
            continue

        if not handle_line(ctx, line):
            return 0


def resolve_db_path(
    state: StateStore,
    db_arg: str | None,
    read_line: Callable[[str], str] = input,
) -> str:
    """
    Pick the working database path.

    Order: the -db argument, the persisted default path, then an interactive
    answer (which becomes the new default).

    Raises:
        StartupError: if no path is available.
    """
    if db_arg:
        return db_arg

    try:
        default = state.read_default_path()
    except StateFileError as e:
        log.warning("ignoring default path: %s", e)
        default = None
    if default:
        return default

    try:
        answer = read_line(PATH_PROMPT).strip()
    except EOFError as e:
        raise StartupError("no database path given") from e
    if not answer:
        raise StartupError("no database path given")

    try:
        state.write_default_path(answer)
    except StateFileError as e:
        print(f"Error saving default path: {e}")
    return answer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbterminal",
        description="Interactive SQL terminal for SQLite databases, with starred queries.",
    )
    parser.add_argument(
        "-db", "--db",
        dest="db",
        help="working database path (default: persisted default path)",
    )
    parser.add_argument(
        "-stardb", "--stardb",
        dest="stardb",
        help=f"bookmark database path (default: {DEFAULT_STATE_DIR}/dbterminal.db)",
    )
    parser.add_argument(
        "--state-dir",
        default=str(DEFAULT_STATE_DIR),
        help=f"directory for lastSql.txt and defaultPath.txt (default: {DEFAULT_STATE_DIR})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="log debug messages to stderr",
    )
    return parser


def tolerant_stdio() -> None:
    """
    Let undecodable input bytes and unprintable output characters through as
    U+FFFD / "?" instead of raising, so one bad line cannot end the session.
    """
    for stream in (sys.stdin, sys.stdout):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(errors="replace")


def main(argv: list[str] | None = None) -> int:
    """
    CLI entrypoint.

    Args:
        argv: Arguments without the program name (sys.argv[1:] if None).

    Returns:
        Exit code.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    tolerant_stdio()

    state = StateStore(Path(args.state_dir))
    star_db = args.stardb or state.star_db_path

    try:
        db_path = resolve_db_path(state, args.db)
        with Session.open(db_path, star_db) as session:
            return repl(ReplContext(session=session, state=state))
    except StartupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
