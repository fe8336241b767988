import threading
from contextlib import contextmanager
from dataclasses import dataclass

from dripchat.chat_models import Message
from dripchat.hub import ChatClient, Hub, new_chat_client


@dataclass(frozen=True)
class User:
    id: int


class FakeIO:
    def __init__(self, incoming=(), fail_write=False):
        self.incoming = list(incoming)
        self.fail_write = fail_write
        self.written = []
        self.attempts = 0

    def read_message(self):
        if not self.incoming:
            raise EOFError("closed")
        return self.incoming.pop(0)

    def write_message(self, message):
        self.attempts += 1
        if self.fail_write:
            raise OSError("broken pipe")
        self.written.append(message)


class FakeRepo:
    def __init__(self, fail=False):
        self.fail = fail
        self.saved = []

    def save_message(self, user_id, to_id, text):
        if self.fail:
            raise RuntimeError("db down")
        message = Message(message_id=len(self.saved) + 1, from_id=user_id, to_id=to_id, text=text)
        self.saved.append(message)
        return message


@contextmanager
def running(hub):
    thread = threading.Thread(target=hub.run, daemon=True)
    thread.start()
    try:
        yield
    finally:
        hub.stop()
        thread.join(timeout=2)
    assert not thread.is_alive()


def test_new_chat_client_registers():
    hub = Hub()
    with running(hub):
        client = new_chat_client(User(1), hub, FakeRepo(), FakeIO())
    assert client in hub.clients


def test_broadcast_reaches_sender_and_recipient_only():
    hub = Hub()
    message = Message(message_id=1, from_id=1, to_id=2, text="hello")
    with running(hub):
        sender = new_chat_client(User(1), hub, FakeRepo(), FakeIO())
        recipient = new_chat_client(User(2), hub, FakeRepo(), FakeIO())
        bystander = new_chat_client(User(3), hub, FakeRepo(), FakeIO())
        hub.broadcast(message)
    assert sender.send.get_nowait() == message
    assert recipient.send.get_nowait() == message
    assert bystander.send.empty()


def test_unregister_removes_and_ends_write_pump():
    hub = Hub()
    with running(hub):
        client = new_chat_client(User(1), hub, FakeRepo(), FakeIO())
        hub.unregister(client)
    assert client not in hub.clients
    pump = threading.Thread(target=client.write_pump, daemon=True)
    pump.start()
    pump.join(timeout=2)
    assert not pump.is_alive()


def test_full_queue_drops_client():
    hub = Hub()
    first = Message(message_id=1, from_id=1, to_id=2, text="a")
    second = Message(message_id=2, from_id=1, to_id=2, text="b")
    slow = ChatClient(user=User(2), hub=hub, repo=FakeRepo(), io=FakeIO(), send_capacity=1)
    with running(hub):
        hub.register(slow)
        hub.broadcast(first)
        hub.broadcast(second)
    assert slow not in hub.clients
    assert slow.send.get_nowait() == first
    pump = threading.Thread(target=slow.write_pump, daemon=True)
    pump.start()
    pump.join(timeout=2)
    assert not pump.is_alive()


def test_read_pump_saves_broadcasts_and_unregisters():
    hub = Hub()
    repo = FakeRepo()
    incoming = Message(to_id=2, text="hi")
    with running(hub):
        reader = new_chat_client(User(1), hub, repo, FakeIO([incoming]))
        recipient = new_chat_client(User(2), hub, FakeRepo(), FakeIO())
        reader.read_pump()
    expected = Message(message_id=1, from_id=1, to_id=2, text="hi")
    assert repo.saved == [expected]
    assert recipient.send.get_nowait() == expected
    assert reader not in hub.clients
    assert recipient in hub.clients


def test_read_pump_stops_when_save_fails():
    hub = Hub()
    with running(hub):
        reader = new_chat_client(User(1), hub, FakeRepo(fail=True),
                                 FakeIO([Message(to_id=2, text="hi")]))
        recipient = new_chat_client(User(2), hub, FakeRepo(), FakeIO())
        reader.read_pump()
    assert recipient.send.empty()
    assert reader not in hub.clients


def test_write_pump_writes_in_order_until_closed():
    hub = Hub()
    io = FakeIO()
    first = Message(message_id=1, from_id=2, to_id=1, text="one")
    second = Message(message_id=2, from_id=1, to_id=2, text="two")
    with running(hub):
        client = new_chat_client(User(1), hub, FakeRepo(), io)
        hub.broadcast(first)
        hub.broadcast(second)
        hub.unregister(client)
    pump = threading.Thread(target=client.write_pump, daemon=True)
    pump.start()
    pump.join(timeout=2)
    assert not pump.is_alive()
    assert io.written == [first, second]


def test_write_pump_stops_on_write_error():
    hub = Hub()
    io = FakeIO(fail_write=True)
    with running(hub):
        client = new_chat_client(User(1), hub, FakeRepo(), io)
        hub.broadcast(Message(message_id=1, from_id=1, to_id=2))
        hub.broadcast(Message(message_id=2, from_id=1, to_id=2))
    client.write_pump()
    assert io.attempts == 1
    assert client.send.qsize() == 1