import json
from datetime import datetime, timezone

import pytest

from dripchat.responses import (
    ContextKey,
    Cookie,
    HTTPError,
    Request,
    Response,
    envelope,
    read_json,
    send_data,
    send_error,
    send_ok,
    write_json,
)


class _Model:
    def __init__(self, payload):
        self.payload = payload

    def to_json(self):
        return json.dumps(self.payload, separators=(",", ":"))

    @classmethod
    def from_json(cls, data):
        return cls(json.loads(data))


class _BrokenWriter:
    status = 200

    def write(self, data):
        raise OSError("closed")


class _Unserialisable:
    def to_json(self):
        raise ValueError("cannot encode")


def test_envelope_with_null_body():
    assert envelope(403, None) == '{"status":403,"body":null}'


def test_send_ok_writes_status_200():
    w = Response()
    send_ok(w)
    assert w.text() == '{"status":200,"body":null}'
    assert w.status == 200


def test_send_data_embeds_model_json():
    w = Response()
    send_data(w, _Model({"a": 1}))
    assert json.loads(w.text()) == {"status": 200, "body": {"a": 1}}


def test_send_data_failure_falls_back_to_500_envelope():
    w = Response()
    send_data(w, _Unserialisable())
    assert json.loads(w.text()) == {"status": 500, "body": None}


def test_send_error_writes_code_and_logs():
    w = Response()
    logged = []
    send_error(w, HTTPError(404, ValueError("nope")), lambda c, m: logged.append((c, m)))
    assert w.text() == '{"status":404,"body":null}'
    assert w.status == 200
    assert logged == [(404, "nope")]


def test_send_error_on_broken_writer_sets_500():
    w = _BrokenWriter()
    logged = []
    send_error(w, HTTPError(404, "x"), lambda c, m: logged.append(c))
    assert w.status == 500
    assert logged == []


def test_read_and_write_json_round_trip():
    w = Response()
    write_json(w, _Model({"k": [1, 2]}))
    model = read_json(Request(body=bytes(w.body)), _Model)
    assert model.payload == {"k": [1, 2]}


def test_read_json_invalid_raises():
    with pytest.raises(ValueError):
        read_json(Request(body=b"{not json"))


def test_request_cookie_lookup():
    r = Request(cookies={"sessionId": "token"})
    assert r.cookie("sessionId").value == "token"
    with pytest.raises(KeyError):
        r.cookie("csrf")


def test_with_value_leaves_original_untouched():
    r = Request()
    r2 = r.with_value(ContextKey.USER_ID, 5)
    assert r2.value(ContextKey.USER_ID) == 5
    assert r.value(ContextKey.USER_ID) is None


def test_cookie_header_value_for_cleared_cookie():
    cookie = Cookie(name="csrf", value="", path="/", http_only=True,
                    expires=datetime(1970, 1, 1, tzinfo=timezone.utc))
    assert cookie.header_value() == "csrf=; Path=/; Expires=Thu, 01 Jan 1970 00:00:00 GMT; HttpOnly"


def test_response_set_cookie_records_cookie():
    w = Response()
    cookie = Cookie(name="csrf", value="token")
    w.set_cookie(cookie)
    assert w.cookies == [cookie]