"""Session storage backed by a Tarantool-style stored-procedure connection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from .session import Session


class SessionRepositoryError(Exception):
    """Raised when the session store rejects or cannot answer a request."""


class _Connection(Protocol):
    def call(self, function_name: str, args: Sequence[Any]) -> Sequence[Any]: ...

    def eval(self, expression: str, args: Sequence[Any]) -> Any: ...


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass
class SessionManager:
    connection: _Connection

    def get_session_by_cookie(self, session_cookie: str) -> Session:
        data = self.connection.call("check_session", [session_cookie])
        if not data:
            raise SessionRepositoryError("cookie does not exist")
        record = data[0]
        if record is None:
            return Session()
        if not isinstance(record, (list, tuple)):
            raise SessionRepositoryError(f"cannot cast data: {record!r}")
        if not record:
            return Session()
        if len(record) < 2 or not isinstance(record[0], str) or not _is_uint(record[1]):
            raise SessionRepositoryError(f"cannot cast data: {record!r}")
        return Session(cookie=record[0], user_id=record[1])

    def new_session_cookie(self, session_cookie: str, user_id: int) -> None:
        if not self.connection.call("new_session", [session_cookie, user_id]):
            raise SessionRepositoryError("this cookie already exists")

    def delete_session_cookie(self, session_cookie: str) -> None:
        if not self.connection.call("delete_session", [session_cookie]):
            raise SessionRepositoryError("this cookie does not exist")


def open_session_manager(connection: _Connection) -> SessionManager:
    """Initialise the store's schema and return a manager over it."""
    connection.eval("return init()", [])
    return SessionManager(connection)