"""Request and response objects and the JSON envelope sent to clients."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from http import HTTPStatus
from typing import Any, Callable

from . import logger as _logger


class ContextKey(str, Enum):
    USER_ID = "userID"
    USER = "user"


@dataclass(frozen=True)
class HTTPError:
    code: int
    message: BaseException | str


@dataclass
class Cookie:
    name: str
    value: str = ""
    path: str = ""
    domain: str = ""
    expires: datetime | None = None
    max_age: int = 0
    secure: bool = False
    http_only: bool = False
    same_site: str = ""

    def header_value(self) -> str:
        """Render the cookie as a Set-Cookie header value."""
        parts = [f"{self.name}={self.value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.expires is not None:
            moment = self.expires
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=timezone.utc)
            parts.append(f"Expires={format_datetime(moment.astimezone(timezone.utc), usegmt=True)}")
        if self.max_age > 0:
            parts.append(f"Max-Age={self.max_age}")
        elif self.max_age < 0:
            parts.append("Max-Age=0")
        if self.http_only:
            parts.append("HttpOnly")
        if self.secure:
            parts.append("Secure")
        if self.same_site:
            parts.append(f"SameSite={self.same_site}")
        return "; ".join(parts)


@dataclass
class Request:
    method: str = "GET"
    url: str = "/"
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    context: dict[Any, Any] = field(default_factory=dict)
    vars: dict[str, str] = field(default_factory=dict)
    remote_addr: str = ""

    def cookie(self, name: str) -> Cookie:
        """Return the named cookie; raise KeyError when it is absent."""
        try:
            return Cookie(name=name, value=self.cookies[name])
        except KeyError:
            raise KeyError(f"named cookie not present: {name}") from None

    def value(self, key: Any) -> Any:
        return self.context.get(key)

    def with_value(self, key: Any, value: Any) -> Request:
        """Return a copy of the request whose context also maps ``key``."""
        return replace(self, context={**self.context, key: value})


@dataclass
class Response:
    status: int = HTTPStatus.OK
    headers: dict[str, str] = field(default_factory=dict)
    cookies: list[Cookie] = field(default_factory=list)
    body: bytearray = field(default_factory=bytearray)

    def write(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.body.extend(data)
        return len(data)

    def set_cookie(self, cookie: Cookie) -> None:
        self.cookies.append(cookie)

    def text(self) -> str:
        return self.body.decode("utf-8")


def _encode(value: Any) -> str:
    if value is None:
        return "null"
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        raw = to_json()
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def envelope(status: int, body: Any = None) -> str:
    """Return the ``{"status":..,"body":..}`` document sent to clients."""
    return '{"status":%d,"body":%s}' % (int(status), _encode(body))


def write_json(w: Response, v: Any) -> None:
    """Serialise ``v`` and write it to ``w``."""
    w.write(_encode(v).encode("utf-8"))


def read_json(r: Request, model: Any = None) -> Any:
    """Decode the request body, through ``model.from_json`` when given."""
    if model is not None:
        return model.from_json(r.body)
    return json.loads(r.body)


def _send(w: Response, status: int, body: Any) -> None:
    try:
        w.write(envelope(status, body).encode("utf-8"))
    except (OSError, TypeError, ValueError) as exc:
        send_error(w, HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, exc),
                   _logger.DRIP_LOGGER.error_logging)
        return
    _logger.DRIP_LOGGER._print_info(f"CODE {int(status)}")


def send_ok(w: Response) -> None:
    _send(w, HTTPStatus.OK, None)


def send_data(w: Response, v: Any) -> None:
    _send(w, HTTPStatus.OK, v)


def send_error(w: Response, http_error: HTTPError,
               logging: Callable[[int, str], None]) -> None:
    """Write an envelope carrying the error code and log the message."""
    try:
        w.write(envelope(http_error.code).encode("utf-8"))
    except OSError:
        w.status = HTTPStatus.INTERNAL_SERVER_ERROR
        return
    logging(int(http_error.code), str(http_error.message))