"""
In-memory stand-ins for websocket connections used by the unit tests.
"""

import asyncio
import json
from types import SimpleNamespace

from websockets.exceptions import ConnectionClosed

_CLOSE = object()


class FakeWebSocket:
    """Records outbound frames and replays queued inbound frames."""

    def __init__(self, frames=(), user_id: str = None, fail_send: bool = False,
                 send_delay: float = 0.0, send_error: Exception = None,
                 remote_address=('127.0.0.1', 50000)):
        self.sent = []
        self.closed = False
        self.fail_send = fail_send
        self.send_error = send_error
        self.send_delay = send_delay
        self.remote_address = remote_address
        path = '/ws' if user_id is None else f'/ws?userId={user_id}'
        self.request = SimpleNamespace(path=path)
        self._incoming = asyncio.Queue()
        for frame in frames:
            self.feed(frame)

    def feed(self, frame):
        """Queue an inbound frame; dicts are JSON-encoded."""
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._incoming.put_nowait(frame)

    def disconnect(self):
        """Simulate the peer going away after the queued frames."""
        self._incoming.put_nowait(_CLOSE)

    def fail_read(self):
        """Simulate a transport error on the next read."""
        self._incoming.put_nowait(ConnectionClosed(None, None))

    def events(self):
        return [frame["event"] for frame in self.sent]

    async def send(self, frame):
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.send_error is not None:
            raise self.send_error
        if self.fail_send or self.closed:
            raise ConnectionClosed(None, None)
        # text frames go out as UTF-8, as the real connection encodes them
        self.sent.append(json.loads(frame.encode('utf-8')))

    async def close(self, code: int = 1000, reason: str = ''):
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


class FakeConnection:
    """Pre-upgrade connection: records the HTTP response it was asked to send."""

    def __init__(self, remote_address=('127.0.0.1', 50000)):
        self.remote_address = remote_address

    def respond(self, status, text):
        return (status, text)
