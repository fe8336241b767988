"""Chat business logic working on behalf of the user in the request context."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from .chat_models import Chat, Message
from .hub import ChatClient, Hub, new_chat_client
from .responses import ContextKey


class ContextNilError(Exception):
    """Raised when the request context carries no current user."""

    def __init__(self, message: str = "context nil error") -> None:
        super().__init__(message)


def _current_user(ctx: Mapping[Any, Any]) -> Any:
    user = ctx.get(ContextKey.USER)
    if user is None or not hasattr(user, "id"):
        raise ContextNilError()
    return user


@dataclass
class ChatUseCase:
    chat_repo: Any
    hub: Hub
    timeout: timedelta = timedelta(seconds=2)

    def client_handler(self, ctx: Mapping[Any, Any], io: Any) -> ChatClient:
        """Register a client for the current user and start its pumps."""
        user = _current_user(ctx)
        client = new_chat_client(user, self.hub, self.chat_repo, io)
        threading.Thread(target=client.write_pump, daemon=True).start()
        threading.Thread(target=client.read_pump, daemon=True).start()
        return client

    def get_chats(self, ctx: Mapping[Any, Any]) -> list[Chat]:
        user = _current_user(ctx)
        return self.chat_repo.get_chats(ctx, user.id)

    def get_chat(self, ctx: Mapping[Any, Any], from_id: int, last_id: int) -> list[Message]:
        user = _current_user(ctx)
        return self.chat_repo.get_chat(ctx, user.id, from_id, last_id)

    def delete_chat(self, ctx: Mapping[Any, Any], from_id: int) -> None:
        """Delete a conversation; a missing user or a failed delete is ignored."""
        try:
            user = _current_user(ctx)
        except ContextNilError:
            return
        try:
            self.chat_repo.delete_chat(ctx, user.id, from_id)
        except Exception:
            return