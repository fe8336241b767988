import pytest

from dripchat.session import Session
from dripchat.session_repository import (
    SessionManager,
    SessionRepositoryError,
    open_session_manager,
)


class FakeConnection:
    def __init__(self, answers=None, eval_error=None):
        self.answers = answers or {}
        self.eval_error = eval_error
        self.calls = []
        self.evals = []

    def call(self, function_name, args):
        self.calls.append((function_name, list(args)))
        return self.answers.get(function_name, [])

    def eval(self, expression, args):
        self.evals.append(expression)
        if self.eval_error:
            raise self.eval_error
        return []


def test_open_runs_init():
    conn = FakeConnection()
    manager = open_session_manager(conn)
    assert conn.evals == ["return init()"]
    assert manager.connection is conn


def test_open_propagates_connection_error():
    with pytest.raises(ConnectionError):
        open_session_manager(FakeConnection(eval_error=ConnectionError("down")))


def test_get_session_by_cookie_found():
    conn = FakeConnection({"check_session": [["token", 9]]})
    assert SessionManager(conn).get_session_by_cookie("token") == Session("token", 9)
    assert conn.calls == [("check_session", ["token"])]


def test_get_session_by_cookie_empty_answer_raises():
    with pytest.raises(SessionRepositoryError):
        SessionManager(FakeConnection()).get_session_by_cookie("token")


@pytest.mark.parametrize("record", [None, []])
def test_get_session_by_cookie_null_record_gives_empty_session(record):
    conn = FakeConnection({"check_session": [record]})
    assert SessionManager(conn).get_session_by_cookie("token") == Session()


@pytest.mark.parametrize("record", ["raw", [1, 2], ["token", "9"], ["token"], ["token", -1]])
def test_get_session_by_cookie_bad_record_raises(record):
    conn = FakeConnection({"check_session": [record]})
    with pytest.raises(SessionRepositoryError):
        SessionManager(conn).get_session_by_cookie("token")


def test_new_session_cookie_success_and_duplicate():
    conn = FakeConnection({"new_session": [["token", 1]]})
    SessionManager(conn).new_session_cookie("token", 1)
    assert conn.calls == [("new_session", ["token", 1])]
    with pytest.raises(SessionRepositoryError):
        SessionManager(FakeConnection()).new_session_cookie("token", 1)


def test_delete_session_cookie_success_and_missing():
    conn = FakeConnection({"delete_session": [["token", 1]]})
    SessionManager(conn).delete_session_cookie("token")
    assert conn.calls == [("delete_session", ["token"])]
    with pytest.raises(SessionRepositoryError):
        SessionManager(FakeConnection()).delete_session_cookie("token")