import pytest

from dbterminal import Session, StateStore
from dbterminal.repl import ReplContext


@pytest.fixture
def session(tmp_path):
    s = Session.open(tmp_path / "work.db", tmp_path / "state" / "dbterminal.db")
    yield s
    s.close()


@pytest.fixture
def state(tmp_path):
    return StateStore(tmp_path / "state")


@pytest.fixture
def ctx(session, state):
    return ReplContext(session=session, state=state)
