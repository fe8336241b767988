"""Session records and session cookies."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .responses import Cookie

SESSION_COOKIE_NAME = "sessionId"
SESSION_LIFETIME = timedelta(hours=10)


@dataclass(frozen=True)
class Session:
    cookie: str = ""
    user_id: int = 0

    def to_json(self) -> str:
        return json.dumps({"Cookie": self.cookie, "UserID": self.user_id},
                          separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, data: bytes | str) -> Session:
        """Decode a session; null and unknown keys are ignored."""
        decoded = json.loads(data)
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise ValueError("session must be a JSON object")
        cookie = decoded.get("Cookie")
        user_id = decoded.get("UserID")
        if cookie is None:
            cookie = ""
        elif not isinstance(cookie, str):
            raise ValueError("Cookie must be a string")
        if user_id is None:
            user_id = 0
        elif isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 0:
            raise ValueError("UserID must be a non-negative integer")
        return cls(cookie=cookie, user_id=user_id)


def create_session_cookie(password: str) -> Cookie:
    """Make a fresh session cookie valid for ten hours."""
    now = datetime.now(timezone.utc)
    digest = hashlib.md5((password + now.isoformat()).encode("utf-8")).hexdigest()
    return Cookie(
        name=SESSION_COOKIE_NAME,
        value=digest,
        path="/api/v1",
        expires=now + SESSION_LIFETIME,
        secure=True,
        http_only=True,
        same_site="None",
    )


def new_session(user_id: int, email: str, cookie: str) -> Session:
    return Session(cookie=cookie, user_id=user_id)