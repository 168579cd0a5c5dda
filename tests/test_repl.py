import pytest

from dbterminal.repl import ReplContext, handle_line, parse_index, repl


def feed(ctx, *lines):
    for line in lines:
        assert handle_line(ctx, line)


def scripted(lines):
    it = iter(lines)

    def read_line(prompt):
        try:
            item = next(it)
        except StopIteration:
            raise EOFError
        if isinstance(item, BaseException):
            raise item
        return item

    return read_line


def test_partial_input_does_not_execute(ctx, state, capsys):
    feed(ctx, "SELECT", "1", "  ")

    assert capsys.readouterr().out == ""
    assert ctx.buffer == "SELECT 1    "
    assert not state.last_sql_path.exists()


def test_semicolon_executes_and_saves_last_sql(ctx, state, capsys):
    feed(ctx, "SELECT", "1;")

    assert capsys.readouterr().out == "1\n-\n1\n"
    assert ctx.buffer == ""
    assert state.read_last_sql() == "SELECT 1;"


def test_statement_may_end_with_trailing_blanks(ctx, state, capsys):
    feed(ctx, "SELECT 1;   ")

    assert capsys.readouterr().out == "1\n-\n1\n"
    assert state.read_last_sql() == "SELECT 1;"


def test_execute_error_is_reported_and_loop_continues(ctx, state, capsys):
    feed(ctx, "SELECT * FROM nope;")

    out = capsys.readouterr().out
    assert out.startswith("Execute error: ")
    assert "no such table: nope" in out
    assert ctx.buffer == ""
    assert state.read_last_sql() == "SELECT * FROM nope;"


def test_save_error_is_reported(ctx, tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    ctx.state.state_dir = blocker

    feed(ctx, "SELECT 1;")

    out = capsys.readouterr().out
    assert out.startswith("1\n-\n1\n")
    assert "Error saving last SQL: " in out
    assert ctx.buffer == ""


def test_star_then_ls(ctx, session, capsys):
    feed(ctx, "SELECT 1;")
    capsys.readouterr()

    feed(ctx, "star")
    assert capsys.readouterr().out == "starred\n"
    assert [b.content for b in session.list_bookmarks()] == ["SELECT 1;"]

    feed(ctx, "ls")
    assert capsys.readouterr().out == "1. SELECT 1;\n"


def test_ls_without_bookmarks(ctx, capsys):
    feed(ctx, "ls")
    assert capsys.readouterr().out == "no data\n"


def test_unstar_after_star_removes_all_matches(ctx, session, capsys):
    feed(ctx, "SELECT 1;", "star", "star")
    assert len(session.list_bookmarks()) == 2
    capsys.readouterr()

    feed(ctx, "unstar")

    assert capsys.readouterr().out == "success\n"
    assert session.list_bookmarks() == []


def test_star_before_anything_ran_stars_empty_text(ctx, session, capsys):
    feed(ctx, "star")

    assert capsys.readouterr().out == "starred\n"
    assert [b.content for b in session.list_bookmarks()] == [""]


def test_star_reports_unreadable_last_sql(ctx, state, session, capsys):
    state.state_dir.mkdir(parents=True, exist_ok=True)
    state.last_sql_path.mkdir()

    feed(ctx, "star")

    assert capsys.readouterr().out.startswith("Error reading last SQL: ")
    assert session.list_bookmarks() == []


def test_commands_leave_buffer_alone(ctx, session, capsys):
    session.add_bookmark("SELECT 1;")
    feed(ctx, "SELECT")
    feed(ctx, "ls", "star", "zip")

    assert ctx.buffer == "SELECT "
    assert capsys.readouterr().out == "1. SELECT 1;\nstarred\nzipped\n"


def test_keywords_are_case_insensitive_and_trimmed(ctx, capsys):
    feed(ctx, "  LS ")
    assert capsys.readouterr().out == "no data\n"
    assert not handle_line(ctx, " Exit ")


def test_zip_command(ctx, session, capsys):
    for sql in ("SELECT 1;", "SELECT 2;", "SELECT 3;"):
        session.add_bookmark(sql)
    session.star_db.execute("DELETE FROM starList WHERE id = 2")

    feed(ctx, "zip", "ls")

    assert capsys.readouterr().out == "zipped\n1. SELECT 1;\n2. SELECT 3;\n"
    assert session.add_bookmark("SELECT 4;") == 3


def test_recall_replays_terminated_bookmark(ctx, session, state, capsys):
    session.add_bookmark("SELECT 2;")
    session.add_bookmark("SELECT 1;")

    feed(ctx, "2")

    assert capsys.readouterr().out == "SQL> SELECT 1;\n1\n-\n1\n"
    assert ctx.buffer == ""
    assert state.read_last_sql() == "SELECT 1;"


def test_recall_replaces_pending_buffer(ctx, session, capsys):
    session.add_bookmark("SELECT 5")
    feed(ctx, "SELECT garbage")

    feed(ctx, " 1 ")
    assert ctx.buffer == "SELECT 5"
    assert capsys.readouterr().out == "SQL> SELECT 5\n"

    feed(ctx, ";")
    assert capsys.readouterr().out == "5\n-\n5\n"


def test_missing_index_keeps_buffer(ctx, capsys):
    feed(ctx, "SELECT")

    feed(ctx, "42")

    assert capsys.readouterr().out == "no such index.\n"
    assert ctx.buffer == "SELECT "


def test_parse_index():
    assert parse_index(" 12 ") == 12
    assert parse_index("-3") == -3
    assert parse_index("1.5") is None
    assert parse_index("ls") is None
    assert parse_index("") is None
    assert parse_index("1_0") is None
    assert parse_index("\u0661") is None
    assert parse_index("+") is None


def test_repl_loop_until_exit(ctx, capsys):
    code = repl(ctx, scripted(["SELECT 1;", "exit", "SELECT 2;"]))

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith(f"Connect to database: {ctx.session.db_path}\n")
    assert "In interactive mode now (Type 'exit' to leave)\n" in out
    assert "1\n-\n1\n" in out
    assert "2\n-\n2" not in out


def test_repl_loop_ends_on_eof(ctx):
    assert repl(ctx, scripted(["SELECT"])) == 0
    assert ctx.buffer == "SELECT "


def test_ctrl_c_clears_buffer(ctx, capsys):
    repl(ctx, scripted(["SELECT nope", KeyboardInterrupt(), "SELECT 3;"]))

    out = capsys.readouterr().out
    assert "3\n-\n3\n" in out
    assert "Execute error" not in out


@pytest.mark.parametrize("line", ["exit", "EXIT", "  exit  "])
def test_exit_variants(ctx, line):
    assert handle_line(ctx, line) is False


@pytest.mark.parametrize("sql", ["SELECT 'a\x00b';", "SELECT '\udcff';"])
def test_unencodable_sql_is_reported_and_loop_continues(ctx, capsys, sql):
    feed(ctx, sql)

    out = capsys.readouterr().out
    assert out.startswith("Execute error: ")
    assert ctx.buffer == ""

    feed(ctx, "SELECT 2;")
    assert capsys.readouterr().out == "2\n-\n2\n"


def test_unexpected_error_is_reported(ctx, monkeypatch, capsys):
    def broken(sql):
        raise RuntimeError("boom")

    monkeypatch.setattr(ctx.session, "execute", broken)

    feed(ctx, "SELECT 1;")

    assert capsys.readouterr().out == "Internal error: boom\n"
    assert ctx.buffer == ""


def test_digit_lookalikes_are_sql(ctx, session, capsys):
    session.add_bookmark("SELECT 10;")

    feed(ctx, "1_0", "١")

    assert capsys.readouterr().out == ""
    assert ctx.buffer == "1_0 ١ "
