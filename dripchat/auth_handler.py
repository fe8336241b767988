"""HTTP endpoints for login, logout, sign-up and the current user."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Callable

from .logger import DRIP_LOGGER, Logger
from .responses import (
    Cookie,
    HTTPError,
    Request,
    Response,
    read_json,
    send_data,
    send_error,
    send_ok,
)
from .session import SESSION_COOKIE_NAME, Session, create_session_cookie

_EPOCH = datetime.fromtimestamp(0, timezone.utc)


def _credentials(r: Request) -> dict[str, Any]:
    data = read_json(r)
    if not isinstance(data, dict):
        raise ValueError("credentials must be a JSON object")
    secret = data.get("password", "")
    if secret is None:
        secret = ""
    if not isinstance(secret, str):
        raise ValueError("password must be a string")
    data["password"] = secret
    return data


def _status_of(exc: BaseException, default: int) -> int:
    status = getattr(exc, "status", None)
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    return default


def _expired_cookie(name: str) -> Cookie:
    return Cookie(name=name, value="", path="/", expires=_EPOCH, http_only=True)


@dataclass
class SessionHandler:
    """Handlers over a user use case and a session use case."""

    user_ucase: Any
    session_ucase: Any
    logger: Logger = field(default_factory=lambda: DRIP_LOGGER)

    def _fail(self, w: Response, code: int, exc: BaseException,
              logging: Callable[[int, str], None]) -> None:
        send_error(w, HTTPError(code, exc), logging)

    def _start_session(self, w: Response, r: Request, password: str, user: Any) -> bool:
        cookie = create_session_cookie(password)
        try:
            self.session_ucase.add_session(r.context, Session(cookie=cookie.value, user_id=user.id))
        except Exception as exc:
            self._fail(w, HTTPStatus.INTERNAL_SERVER_ERROR, exc, self.logger.warn_logging)
            return False
        w.set_cookie(cookie)
        return True

    def login_handler(self, w: Response, r: Request) -> None:
        try:
            credentials = _credentials(r)
        except ValueError as exc:
            self._fail(w, HTTPStatus.BAD_REQUEST, exc, self.logger.error_logging)
            return
        try:
            user = self.user_ucase.login(r.context, credentials)
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc, self.logger.warn_logging)
            return
        if self._start_session(w, r, credentials["password"], user):
            send_data(w, user)

    def logout_handler(self, w: Response, r: Request) -> None:
        try:
            self.session_ucase.delete_session(r.context)
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc, self.logger.warn_logging)
            return
        w.set_cookie(_expired_cookie(SESSION_COOKIE_NAME))
        w.set_cookie(_expired_cookie("csrf"))
        send_ok(w)

    def current_user(self, w: Response, r: Request) -> None:
        try:
            user = self.user_ucase.current_user(r.context)
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc, self.logger.error_logging)
            return
        send_data(w, user)

    def signup_handler(self, w: Response, r: Request) -> None:
        """Create an account; an error carrying an int ``status`` sets the code."""
        try:
            credentials = _credentials(r)
        except ValueError as exc:
            self._fail(w, HTTPStatus.BAD_REQUEST, exc, self.logger.error_logging)
            return
        try:
            user = self.user_ucase.signup(r.context, credentials)
        except Exception as exc:
            self._fail(w, _status_of(exc, HTTPStatus.NOT_FOUND), exc, self.logger.error_logging)
            return
        if self._start_session(w, r, credentials["password"], user):
            send_data(w, user)