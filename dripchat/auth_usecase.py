"""Session business logic: adding and removing login sessions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from .responses import ContextKey
from .session import Session


class SessionContextError(Exception):
    """Raised when the request context carries no usable session."""


@dataclass
class SessionUsecase:
    repository: Any
    timeout: timedelta = timedelta(seconds=2)

    def add_session(self, ctx: Mapping[Any, Any], session: Session) -> None:
        self.repository.new_session_cookie(session.cookie, session.user_id)

    def delete_session(self, ctx: Mapping[Any, Any]) -> None:
        current = ctx.get(ContextKey.USER_ID)
        if current is None:
            raise SessionContextError("context nil error")
        if not isinstance(current, Session):
            raise SessionContextError("convert to model session error")
        self.repository.delete_session_cookie(current.cookie)