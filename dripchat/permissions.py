"""Request guards: session authentication and CSRF tokens."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from typing import Any, Callable

from . import logger as _logger
from .responses import ContextKey, Cookie, HTTPError, Request, Response, send_error
from .session import SESSION_COOKIE_NAME, Session

Handler = Callable[[Response, Request], None]

CSRF_COOKIE_NAME = "csrf"
CSRF_HEADER = "x-csrf-Token"
CSRF_LIFETIME = timedelta(days=30)
CSRF_PROTECTION_STATUS = 419

ERR_AUTH = "authorization error"
ERR_EXTRACT_CONTEXT = "extract context error"
ERR_CSRF = "csrf token is missing or invalid"


def _header(r: Request, name: str) -> str:
    wanted = name.lower()
    return next((value for key, value in r.headers.items() if key.lower() == wanted), "")


@dataclass
class Permission:
    """Guards built around an auth client offering ``get_from_session`` and ``get_by_id``."""

    auth_client: Any

    def check_auth(self, next_handler: Handler) -> Handler:
        """Resolve the session cookie and put the session in the request context."""
        def handler(w: Response, r: Request) -> None:
            try:
                cookie = r.cookie(SESSION_COOKIE_NAME)
                session = self.auth_client.get_from_session(r.context, cookie.value)
            except Exception:
                send_error(w, HTTPError(HTTPStatus.FORBIDDEN, ERR_AUTH),
                           _logger.DRIP_LOGGER.warn_logging)
                return
            next_handler(w, r.with_value(ContextKey.USER_ID, session))
        return handler

    def get_current_user(self, next_handler: Handler) -> Handler:
        """Load the user of the context's session into the request context."""
        def handler(w: Response, r: Request) -> None:
            _logger.DRIP_LOGGER.debug_logging("get current")
            session = r.value(ContextKey.USER_ID)
            if not isinstance(session, Session):
                send_error(w, HTTPError(HTTPStatus.FORBIDDEN, ERR_EXTRACT_CONTEXT),
                           _logger.DRIP_LOGGER.error_logging)
                return
            try:
                user = self.auth_client.get_by_id(r.context, session)
            except Exception as exc:
                send_error(w, HTTPError(HTTPStatus.NOT_FOUND, exc),
                           _logger.DRIP_LOGGER.error_logging)
                return
            next_handler(w, r.with_value(ContextKey.USER, user))
        return handler


def _issue_csrf(w: Response) -> None:
    token = str(uuid.uuid4())
    w.set_cookie(Cookie(
        name=CSRF_COOKIE_NAME,
        value=token,
        path="/",
        http_only=True,
        expires=datetime.now(timezone.utc) + CSRF_LIFETIME,
    ))
    w.headers["csrf"] = token


def set_csrf(next_handler: Handler) -> Handler:
    """Issue a fresh CSRF token before calling ``next_handler``."""
    def handler(w: Response, r: Request) -> None:
        _issue_csrf(w)
        next_handler(w, r)
    return handler


def check_csrf(next_handler: Handler) -> Handler:
    """Require the CSRF header to match the CSRF cookie, then issue a new token."""
    def handler(w: Response, r: Request) -> None:
        token = _header(r, CSRF_HEADER)
        cookie_value = r.cookies.get(CSRF_COOKIE_NAME, "")
        if not token or not cookie_value or token != cookie_value:
            send_error(w, HTTPError(CSRF_PROTECTION_STATUS, ERR_CSRF),
                       _logger.DRIP_LOGGER.error_logging)
            return
        _issue_csrf(w)
        next_handler(w, r)
    return handler