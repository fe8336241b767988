"""HTTP and websocket endpoints for chats."""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Callable

from .chat_models import Chats, Message, Messages
from .logger import DRIP_LOGGER, Logger
from .responses import HTTPError, Request, Response, send_data, send_error, send_ok

_WS_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_UINT64_MASK = 2**64 - 1


def _parse_id(raw: str | None) -> int:
    """Parse a decimal id; negative values wrap as unsigned 64-bit integers."""
    if raw is None or not _INT_RE.fullmatch(raw):
        raise ValueError(f"invalid id {raw!r}: invalid syntax")
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"invalid id {raw!r}: value out of range")
    return value & _UINT64_MASK


def _header(r: Request, name: str) -> str:
    wanted = name.lower()
    return next((value for key, value in r.headers.items() if key.lower() == wanted), "")


def _tokens(value: str) -> set[str]:
    return {part.strip().lower() for part in value.split(",") if part.strip()}


def _accept_key(r: Request) -> str:
    """Validate a websocket handshake and return its Sec-WebSocket-Accept value."""
    if r.method.upper() != "GET":
        raise ValueError("websocket: request method is not GET")
    if "upgrade" not in _tokens(_header(r, "Connection")):
        raise ValueError("websocket: 'upgrade' token not found in 'Connection' header")
    if "websocket" not in _tokens(_header(r, "Upgrade")):
        raise ValueError("websocket: 'websocket' token not found in 'Upgrade' header")
    if _header(r, "Sec-Websocket-Version") != "13":
        raise ValueError("websocket: unsupported version: 13 not found in 'Sec-Websocket-Version' header")
    key = _header(r, "Sec-Websocket-Key")
    try:
        decoded = base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError):
        decoded = b""
    if len(decoded) != 16:
        raise ValueError("websocket: 'Sec-WebSocket-Key' header must be Base64 encoded value of 16-byte length")
    digest = hashlib.sha1((key + _WS_GUID).encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass
class MessagesWS:
    """Reads and writes chat messages over a JSON connection.

    ``conn`` offers ``read_json()`` returning a decoded object and
    ``write_json(obj)``.
    """

    conn: Any
    logger: Logger = field(default_factory=lambda: DRIP_LOGGER)

    def read_message(self) -> Message:
        try:
            return Message.from_dict(self.conn.read_json())
        except Exception as exc:
            self.logger.error_logging(int(HTTPStatus.INTERNAL_SERVER_ERROR), f"ReadJSON: {exc}")
            raise

    def write_message(self, message: Message) -> None:
        try:
            self.conn.write_json(message.to_dict())
        except Exception as exc:
            self.logger.error_logging(int(HTTPStatus.INTERNAL_SERVER_ERROR), f"WriteJSON: {exc}")
            raise


@dataclass
class ChatHandler:
    """HTTP handlers over a chat use case.

    ``upgrader`` turns an accepted websocket handshake into a JSON connection.
    """

    chat: Any
    logger: Logger = field(default_factory=lambda: DRIP_LOGGER)
    upgrader: Callable[[Response, Request], Any] | None = None

    def _fail(self, w: Response, code: int, exc: BaseException) -> None:
        send_error(w, HTTPError(code, exc), self.logger.error_logging)

    def get_chat(self, w: Response, r: Request) -> None:
        try:
            from_id = _parse_id(r.vars.get("id"))
            last_id = _parse_id(r.vars.get("lastId"))
            messages = self.chat.get_chat(r.context, from_id, last_id)
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc)
            return
        send_data(w, Messages(messages))

    def get_chats(self, w: Response, r: Request) -> None:
        try:
            chats = self.chat.get_chats(r.context)
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc)
            return
        send_data(w, Chats(chats))

    def delete_chat(self, w: Response, r: Request) -> None:
        try:
            from_id = _parse_id(r.vars.get("id"))
            self.chat.delete_chat(r.context, from_id)
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc)
            return
        send_ok(w)

    def upgrade_ws(self, w: Response, r: Request) -> None:
        """Accept a websocket handshake and hand the connection to the chat."""
        try:
            accept = _accept_key(r)
            if self.upgrader is None:
                raise ConnectionError("no websocket transport is configured")
            conn = self.upgrader(w, r)
        except Exception as exc:
            self._fail(w, HTTPStatus.INTERNAL_SERVER_ERROR, exc)
            return
        w.status = HTTPStatus.SWITCHING_PROTOCOLS
        w.headers.update({
            "Upgrade": "websocket",
            "Connection": "Upgrade",
            "Sec-WebSocket-Accept": accept,
        })
        try:
            self.chat.client_handler(r.context, MessagesWS(conn, self.logger))
        except Exception as exc:
            self._fail(w, HTTPStatus.NOT_FOUND, exc)