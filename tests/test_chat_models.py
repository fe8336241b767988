from datetime import datetime, timedelta, timezone

import pytest

from dripchat.chat_models import Chat, Chats, Message, Messages


def test_zero_message_wire_form():
    assert Message().to_json() == (
        '{"messageID":0,"fromID":0,"toID":0,"text":"","date":"0001-01-01T00:00:00Z"}'
    )


def test_fractional_seconds_drop_trailing_zeros():
    moment = datetime(2021, 11, 20, 10, 30, 15, 123000, tzinfo=timezone.utc)
    assert Message(date=moment).to_dict()["date"] == "2021-11-20T10:30:15.123Z"


def test_message_round_trip_with_offset():
    moment = datetime(2021, 11, 20, 10, 30, 15, 500, tzinfo=timezone(timedelta(hours=3)))
    original = Message(message_id=1, from_id=1, to_id=2, text="text from 1", date=moment)
    restored = Message.from_json(original.to_json())
    assert restored == original
    assert restored.date.utcoffset() == timedelta(hours=3)


def test_nanosecond_dates_are_truncated():
    message = Message.from_json('{"date":"2021-11-20T10:30:15.123456789Z"}')
    assert message.date == datetime(2021, 11, 20, 10, 30, 15, 123456, tzinfo=timezone.utc)


def test_nulls_and_unknown_keys_are_ignored():
    data = '{"messageID":null,"extra":[1,2],"text":"hi","date":null}'
    assert Message.from_json(data) == Message(text="hi")


@pytest.mark.parametrize("data", [
    '{"messageID":-1}',
    '{"fromID":"1"}',
    '{"toID":true}',
    '{"text":5}',
    '{"date":"yesterday"}',
    '[1,2]',
])
def test_invalid_message_raises(data):
    with pytest.raises(ValueError):
        Message.from_json(data)


def test_messages_nil_and_empty_differ():
    assert Messages().to_json() == '{"Messages":null}'
    assert Messages([]).to_json() == '{"Messages":[]}'
    assert Messages.from_json('{"Messages":[]}') == Messages([])
    assert Messages.from_json('{"Messages":null}') == Messages()


def test_messages_round_trip():
    stamp = datetime(2021, 12, 1, 8, 0, tzinfo=timezone.utc)
    batch = Messages([
        Message(message_id=1, from_id=1, to_id=2, text="text from 1", date=stamp),
        Message(message_id=2, from_id=2, to_id=1, text="text from 2", date=stamp),
    ])
    assert Messages.from_json(batch.to_json()) == batch


def test_chat_keys_in_order():
    assert list(Chat().to_dict()) == ["fromUserID", "name", "img", "messages"]


def test_chats_round_trip():
    stamp = datetime(2021, 12, 1, 8, 0, tzinfo=timezone.utc)
    messages = [Message(message_id=1, from_id=1, to_id=2, text="text", date=stamp)]
    chats = Chats([
        Chat(from_user_id=1, name="chat name", img="chat.img", messages=messages),
        Chat(from_user_id=2, name="chat name", img="chat.img", messages=[]),
        Chat(from_user_id=3, name="other"),
    ])
    restored = Chats.from_json(chats.to_json())
    assert restored == chats
    assert restored.chats[2].messages is None


def test_chats_null_document():
    assert Chats.from_json("null") == Chats()
    assert Chats().to_json() == '{"Chats":null}'


def test_chats_must_be_array():
    with pytest.raises(ValueError):
        Chats.from_json('{"Chats":{}}')