"""
Shared fixtures for the chat client tests.

The connection manager takes a websocket_factory, so most tests run it
against FakeConnector/FakeWebSocket instead of a network.
"""

import asyncio
import json

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from chat_client import ClientSettings, DispatchCallbacks, MANUAL_CLOSE_CODE

_CLOSED = object()


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, url):
        self.url = url
        self.sent = []
        self.close_calls = []
        self.close_code = None
        self.fail_sends = False
        self._incoming = asyncio.Queue()

    async def send(self, message):
        if self.close_code is not None or self.fail_sends:
            raise ConnectionClosedError(None, None)
        self.sent.append(message)

    async def recv(self):
        item = await self._incoming.get()
        if item is _CLOSED:
            self._incoming.put_nowait(_CLOSED)
            if self.close_code == MANUAL_CLOSE_CODE:
                raise ConnectionClosedOK(None, None)
            raise ConnectionClosedError(None, None)
        return item

    async def close(self, code=1000, reason=""):
        self.close_calls.append(code)
        if self.close_code is None:
            self.close_code = code
            self._incoming.put_nowait(_CLOSED)

    def feed(self, frame):
        """Deliver a frame from the server (dicts are JSON-encoded)."""
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._incoming.put_nowait(frame)

    def drop(self, code=1006):
        """Simulate the server or network closing the connection."""
        self.close_code = code
        self._incoming.put_nowait(_CLOSED)

    @property
    def sent_frames(self):
        return [json.loads(message) for message in self.sent]


class FakeConnector:
    """
    websocket_factory that hands out FakeWebSockets.

    Attributes:
        failures: Number of upcoming handshakes that raise OSError
        gate: When set to an asyncio.Event, handshakes wait for it
    """

    def __init__(self):
        self.urls = []
        self.sockets = []
        self.failures = 0
        self.gate = None

    async def __call__(self, url):
        self.urls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        if self.failures > 0:
            self.failures -= 1
            raise OSError("Connection refused")
        websocket = FakeWebSocket(url)
        self.sockets.append(websocket)
        return websocket

    @property
    def latest(self):
        return self.sockets[-1]


class Recorder:
    """Collects everything the manager dispatches."""

    def __init__(self):
        self.messages = []
        self.connects = 0
        self.disconnects = 0
        self.errors = []

    def on_connect(self):
        self.connects += 1

    def on_disconnect(self):
        self.disconnects += 1

    def callbacks(self):
        return DispatchCallbacks(
            on_message=self.messages.append,
            on_connect=self.on_connect,
            on_disconnect=self.on_disconnect,
            on_error=self.errors.append,
        )


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def fast_settings():
    """Settings with a 10ms reconnect delay and the default 5 attempts."""
    return ClientSettings(api_base="http://chat.test", reconnect_delay_ms=10)


@pytest.fixture
def settle():
    """Let pending callbacks and tasks on the loop run."""

    async def _settle(rounds=10):
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def wait_until():
    """Poll a condition until it holds or the timeout passes."""

    async def _wait_until(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("Timed out waiting for condition")
            await asyncio.sleep(0.005)

    return _wait_until
