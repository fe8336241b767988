"""Message hub that relays chat messages between connected clients."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .chat_models import Message

DEFAULT_SEND_CAPACITY = 256
_CLOSED = object()


class _Op(Enum):
    REGISTER = "register"
    UNREGISTER = "unregister"
    BROADCAST = "broadcast"
    STOP = "stop"


class Hub:
    """Keeps the set of clients and fans messages out to their queues.

    Requests are queued and handled in order by :meth:`run`, which is meant
    to be run on its own thread.
    """

    def __init__(self) -> None:
        self._inbox: queue.Queue[tuple[_Op, Any]] = queue.Queue()
        self._clients: set[ChatClient] = set()
        self._lock = threading.Lock()

    @property
    def clients(self) -> frozenset[ChatClient]:
        with self._lock:
            return frozenset(self._clients)

    def run(self) -> None:
        """Handle requests until :meth:`stop` is called."""
        while True:
            op, payload = self._inbox.get()
            if op is _Op.STOP:
                return
            with self._lock:
                if op is _Op.REGISTER:
                    self._clients.add(payload)
                elif op is _Op.UNREGISTER:
                    if payload in self._clients:
                        self._clients.discard(payload)
                        payload._close()
                else:
                    self._deliver(payload)

    def _deliver(self, message: Message) -> None:
        for client in list(self._clients):
            if client.user.id not in (message.from_id, message.to_id):
                continue
            try:
                client.send.put_nowait(message)
            except queue.Full:
                client._close()
                self._clients.discard(client)

    def stop(self) -> None:
        self._inbox.put((_Op.STOP, None))

    def register(self, client: ChatClient) -> None:
        self._inbox.put((_Op.REGISTER, client))

    def unregister(self, client: ChatClient) -> None:
        self._inbox.put((_Op.UNREGISTER, client))

    def broadcast(self, message: Message) -> None:
        self._inbox.put((_Op.BROADCAST, message))


@dataclass(eq=False)
class ChatClient:
    """One connected user: reads messages from ``io`` and writes replies to it.

    ``repo`` stores incoming messages through ``save_message``; ``io`` offers
    ``read_message()`` and ``write_message(message)``.
    """

    user: Any
    hub: Hub
    repo: Any
    io: Any
    send_capacity: int = DEFAULT_SEND_CAPACITY
    poll_interval: float = 0.05
    send: queue.Queue = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.send = queue.Queue(maxsize=self.send_capacity)
        self._closed = threading.Event()

    def _close(self) -> None:
        self._closed.set()
        try:
            self.send.put_nowait(_CLOSED)
        except queue.Full:
            pass

    def read_pump(self) -> None:
        """Save and broadcast incoming messages until reading or saving fails."""
        try:
            while True:
                try:
                    incoming = self.io.read_message()
                    saved = self.repo.save_message(self.user.id, incoming.to_id, incoming.text)
                except Exception:
                    break
                self.hub.broadcast(saved)
        finally:
            self.hub.unregister(self)

    def write_pump(self) -> None:
        """Write queued messages until the client is closed or writing fails."""
        while True:
            try:
                message = self.send.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._closed.is_set():
                    return
                continue
            if message is _CLOSED:
                return
            try:
                self.io.write_message(message)
            except Exception:
                return


def new_chat_client(user: Any, hub: Hub, repo: Any, io: Any) -> ChatClient:
    """Create a client and register it with ``hub``."""
    client = ChatClient(user=user, hub=hub, repo=repo, io=io)
    hub.register(client)
    return client