"""Chat messages and conversations with their JSON wire form."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_UINT64_MAX = 2**64 - 1
_TIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})\Z"
)


def format_time(moment: datetime) -> str:
    """Render ``moment`` as RFC 3339 with trailing fractional zeros dropped."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds()) // 60
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def parse_time(text: Any) -> datetime:
    """Parse an RFC 3339 timestamp; precision beyond microseconds is cut."""
    if not isinstance(text, str):
        raise ValueError("date must be an RFC 3339 string")
    match = _TIME_RE.match(text)
    if match is None:
        raise ValueError(f"cannot parse date {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "")[:6].ljust(6, "0"))
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        delta = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        tz = timezone(sign * delta)
    return datetime(int(year), int(month), int(day), int(hour), int(minute),
                    int(second), micro, tzinfo=tz)


def _uint(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _UINT64_MAX:
        raise ValueError(f"{key} must be an unsigned 64-bit integer")
    return value


def _str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _message_list(value: Any, key: str) -> list[Message]:
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a JSON array")
    return [Message.from_dict(item) for item in value]


@dataclass(frozen=True)
class Message:
    message_id: int = 0
    from_id: int = 0
    to_id: int = 0
    text: str = ""
    date: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageID": self.message_id,
            "fromID": self.from_id,
            "toID": self.to_id,
            "text": self.text,
            "date": format_time(self.date),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        """Build a message; null values and unknown keys are ignored."""
        if data is None:
            return cls()
        data = _object(data, "message")
        fields: dict[str, Any] = {}
        converters = {
            "messageID": ("message_id", _uint),
            "fromID": ("from_id", _uint),
            "toID": ("to_id", _uint),
            "text": ("text", _str),
        }
        for key, (name, convert) in converters.items():
            if data.get(key) is not None:
                fields[name] = convert(data[key], key)
        if data.get("date") is not None:
            fields["date"] = parse_time(data["date"])
        return cls(**fields)

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_json(cls, data: bytes | str) -> Message:
        return cls.from_dict(json.loads(data))


@dataclass
class Chat:
    from_user_id: int = 0
    name: str = ""
    img: str = ""
    messages: list[Message] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "fromUserID": self.from_user_id,
            "name": self.name,
            "img": self.img,
            "messages": None if self.messages is None
            else [message.to_dict() for message in self.messages],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Chat:
        if data is None:
            return cls()
        data = _object(data, "chat")
        chat = cls()
        if data.get("fromUserID") is not None:
            chat.from_user_id = _uint(data["fromUserID"], "fromUserID")
        if data.get("name") is not None:
            chat.name = _str(data["name"], "name")
        if data.get("img") is not None:
            chat.img = _str(data["img"], "img")
        if data.get("messages") is not None:
            chat.messages = _message_list(data["messages"], "messages")
        return chat


@dataclass
class Messages:
    messages: list[Message] | None = field(default=None)

    def to_json(self) -> str:
        body = None if self.messages is None else [m.to_dict() for m in self.messages]
        return _dumps({"Messages": body})

    @classmethod
    def from_json(cls, data: bytes | str) -> Messages:
        decoded = json.loads(data)
        if decoded is None:
            return cls()
        decoded = _object(decoded, "messages")
        if decoded.get("Messages") is None:
            return cls()
        return cls(_message_list(decoded["Messages"], "Messages"))


@dataclass
class Chats:
    chats: list[Chat] | None = field(default=None)

    def to_json(self) -> str:
        body = None if self.chats is None else [c.to_dict() for c in self.chats]
        return _dumps({"Chats": body})

    @classmethod
    def from_json(cls, data: bytes | str) -> Chats:
        decoded = json.loads(data)
        if decoded is None:
            return cls()
        decoded = _object(decoded, "chats")
        value = decoded.get("Chats")
        if value is None:
            return cls()
        if not isinstance(value, list):
            raise ValueError("Chats must be a JSON array")
        return cls([Chat.from_dict(item) for item in value])