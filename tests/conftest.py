"""Test configuration and fixtures."""
import json
from datetime import datetime, timezone

import pytest

from app.services.connections import ConnectionPool
from app.services.registry import SessionRegistry
from app.services.relay import Relay

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

class FakeConnection:
    """In-memory stand-in for a transport connection."""

    _counter = 0

    def __init__(self, name: str | None = None):
        FakeConnection._counter += 1
        self.id = name or f"conn-{FakeConnection._counter}"
        self.sent: list[str] = []
        self.close_code: int | None = None
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def send(self, text: str) -> None:
        if self._open:
            self.sent.append(text)

    def close(self, code: int = 1000) -> None:
        self._open = False
        self.close_code = code

    def drop(self) -> None:
        """Simulate the peer going away without a close handshake."""
        self._open = False

    def messages(self) -> list[dict]:
        return [json.loads(t) for t in self.sent]

    def take(self) -> list[dict]:
        out = self.messages()
        self.sent.clear()
        return out

@pytest.fixture
def registry():
    return SessionRegistry()

@pytest.fixture
def pool():
    return ConnectionPool()

@pytest.fixture
def relay(registry, pool):
    return Relay(registry, pool, default_color="#000000", clock=lambda: FIXED_NOW)

@pytest.fixture
def connect(relay):
    """Open a fake connection on the relay."""
    def _connect(name: str | None = None) -> FakeConnection:
        conn = FakeConnection(name)
        relay.on_open(conn)
        return conn
    return _connect

def send(relay, conn, payload) -> None:
    relay.on_message(conn, payload if isinstance(payload, (str, bytes)) else json.dumps(payload))
