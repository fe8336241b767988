"""Chat storage in a PostgreSQL database reached through a DB-API connection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from .chat_models import Chat, Message

GET_MESSAGES_QUERY = """select message_id, from_id, to_id, text, date
    from message
    where
      ((from_id = %(user_id)s and to_id = %(from_id)s)
       or (from_id = %(from_id)s and to_id = %(user_id)s))
      and message_id < %(last_id)s
    order by date
    limit 100;"""

GET_LAST_MESSAGE_QUERY = """select message_id, from_id, to_id, text, date
    from message
    where
      (from_id = %(user_id)s and to_id = %(other_id)s)
      or (from_id = %(other_id)s and to_id = %(user_id)s)
    order by date desc
    limit 1;"""

SAVE_MESSAGE_QUERY = """insert into message(from_id, to_id, text)
    values (%(from_id)s, %(to_id)s, %(text)s)
    returning message_id, from_id, to_id, text, date;"""

GET_CHATS_QUERY = """select
        op.id, op.name as name, op.imgs[1] as img
    from
        profile p
        join message m on p.id = m.from_id
        join profile op on op.id = m.to_id
    where m.from_id = %(user_id)s
    union select
        p.id as FromUserID, p.name as name, p.imgs[1] as img
    from
        profile p
        join message m on p.id = m.from_id
        join profile op on op.id = m.to_id
    where m.to_id = %(user_id)s
    group by op.id, op.name, op.imgs[1], p.id, p.id, p.name, p.imgs[1];"""

DELETE_MESSAGES_QUERY = """delete from message m
    where ((m.from_id = %(user_id)s and m.to_id = %(from_id)s)
        or (m.from_id = %(from_id)s and m.to_id = %(user_id)s))
    returning message_id;"""


class ChatRepositoryError(Exception):
    """Raised when a query that must return a row returns none."""


def _message_from_row(row: Sequence[Any]) -> Message:
    message_id, from_id, to_id, text, date = row
    return Message(
        message_id=int(message_id),
        from_id=int(from_id),
        to_id=int(to_id),
        text=text,
        date=date,
    )


def _chat_from_row(row: Sequence[Any]) -> Chat:
    chat_id, name, img = row
    return Chat(from_user_id=int(chat_id), name=name or "", img=img or "")


@dataclass
class PostgresChatRepository:
    """Reads and writes chat messages; ``connection`` follows DB-API 2.0."""

    connection: Any

    def _fetch_all(self, query: str, params: Mapping[str, Any]) -> list[Sequence[Any]]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def _fetch_one(self, query: str, params: Mapping[str, Any]) -> Sequence[Any]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            row = cursor.fetchone()
        finally:
            cursor.close()
        if row is None:
            raise ChatRepositoryError("no rows in result set")
        return row

    def get_chats(self, ctx: Any, user_id: int) -> list[Chat]:
        """Return every conversation of ``user_id`` with its latest message."""
        chats = [_chat_from_row(row)
                 for row in self._fetch_all(GET_CHATS_QUERY, {"user_id": user_id})]
        for chat in chats:
            row = self._fetch_one(GET_LAST_MESSAGE_QUERY,
                                  {"user_id": user_id, "other_id": chat.from_user_id})
            chat.messages = [*(chat.messages or []), _message_from_row(row)]
        return chats

    def get_chat(self, ctx: Any, user_id: int, from_id: int, last_id: int) -> list[Message]:
        """Return up to 100 messages between two users older than ``last_id``."""
        rows = self._fetch_all(GET_MESSAGES_QUERY,
                               {"user_id": user_id, "from_id": from_id, "last_id": last_id})
        return [_message_from_row(row) for row in rows]

    def save_message(self, user_id: int, to_id: int, text: str) -> Message:
        row = self._fetch_one(SAVE_MESSAGE_QUERY,
                              {"from_id": user_id, "to_id": to_id, "text": text})
        return _message_from_row(row)

    def delete_chat(self, ctx: Any, user_id: int, from_id: int) -> None:
        """Delete all messages between two users; raise if there were none."""
        self._fetch_one(DELETE_MESSAGES_QUERY, {"user_id": user_id, "from_id": from_id})