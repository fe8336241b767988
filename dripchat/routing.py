"""Path-pattern routing and the route tables of the chat and auth services."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from http import HTTPStatus
from typing import Any, Callable, Iterable
from urllib.parse import unquote, urlsplit

from .auth_handler import SessionHandler
from .chat_delivery import ChatHandler
from .logger import Logger
from .permissions import Permission, set_csrf
from .responses import Request, Response

Handler = Callable[[Response, Request], None]

_VAR_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)(?::([^{}]+))?\}")


def _compile(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    pos = 0
    for match in _VAR_RE.finditer(pattern):
        parts.append(re.escape(pattern[pos:match.start()]))
        parts.append(f"(?P<{match[1]}>{match[2] or '[^/]+'})")
        pos = match.end()
    parts.append(re.escape(pattern[pos:]))
    return re.compile("".join(parts))


@dataclass(frozen=True)
class _Route:
    pattern: str
    regex: re.Pattern[str]
    handler: Handler
    methods: frozenset[str] | None


class Router:
    """Matches request paths against ``{name:regex}`` patterns in order."""

    def __init__(self) -> None:
        self._routes: list[_Route] = []

    def handle(self, pattern: str, handler: Handler,
               methods: Iterable[str] | None = None) -> None:
        allowed = frozenset(m.upper() for m in methods) if methods else None
        self._routes.append(_Route(pattern, _compile(pattern), handler, allowed))

    def dispatch(self, w: Response, r: Request) -> None:
        """Call the first matching route; answer 405 or 404 when none fits."""
        path = unquote(urlsplit(r.url).path) or "/"
        method_mismatch = False
        for route in self._routes:
            match = route.regex.fullmatch(path)
            if match is None:
                continue
            if route.methods is not None and r.method.upper() not in route.methods:
                method_mismatch = True
                continue
            route.handler(w, replace(r, vars=dict(match.groupdict())))
            return
        if method_mismatch:
            w.status = HTTPStatus.METHOD_NOT_ALLOWED
            return
        w.status = HTTPStatus.NOT_FOUND
        w.write("404 page not found\n")


def set_chat_routing(logger: Logger, router: Router, chat_ucase: Any,
                     session_client: Any) -> ChatHandler:
    """Register the chat endpoints; return the handler so a websocket upgrader can be set."""
    chat_handler = ChatHandler(chat=chat_ucase, logger=logger)
    perm = Permission(auth_client=session_client)

    def guarded(handler: Handler) -> Handler:
        return set_csrf(perm.check_auth(perm.get_current_user(handler)))

    router.handle("/api/v1/apiws", guarded(chat_handler.upgrade_ws))
    router.handle("/api/v1/chat/{id:[0-9]+}&{lastId:[0-9]+}",
                  guarded(chat_handler.get_chat), ["GET", "OPTIONS"])
    router.handle("/api/v1/chats", guarded(chat_handler.get_chats), ["GET", "OPTIONS"])
    router.handle("/api/v1/chat/{id:[0-9]+}",
                  guarded(chat_handler.delete_chat), ["DELETE", "OPTIONS"])
    return chat_handler


def set_session_routing(logger: Logger, router: Router, user_ucase: Any,
                        session_ucase: Any, session_client: Any) -> SessionHandler:
    """Register the login, logout, profile and sign-up endpoints."""
    session_handler = SessionHandler(user_ucase=user_ucase, session_ucase=session_ucase,
                                     logger=logger)
    perm = Permission(auth_client=session_client)

    router.handle("/api/v1/auth/session", set_csrf(session_handler.login_handler),
                  ["POST", "OPTIONS"])
    router.handle("/api/v1/auth/session", perm.check_auth(session_handler.logout_handler),
                  ["DELETE", "OPTIONS"])
    router.handle("/api/v1/auth/profile",
                  set_csrf(perm.check_auth(perm.get_current_user(session_handler.current_user))),
                  ["GET", "OPTIONS"])
    router.handle("/api/v1/auth/profile", set_csrf(session_handler.signup_handler),
                  ["POST", "OPTIONS"])
    return session_handler