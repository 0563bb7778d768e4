import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Protocol

from fastapi import WebSocket

logger = logging.getLogger(__name__)

NORMAL_CLOSURE = 1000
PROTOCOL_ERROR = 1002

class Connection(Protocol):
    id: str

    @property
    def is_open(self) -> bool: ...

    def send(self, text: str) -> None: ...

    def close(self, code: int = NORMAL_CLOSURE) -> None: ...

class WebSocketConnection:
    """Fire-and-forget sender around a WebSocket.

    Frames are queued and written by a background task, so a slow peer never
    holds up the caller. Once the buffer is full further frames are dropped.
    """

    def __init__(self, ws: WebSocket, queue_size: int = 256):
        self.ws = ws
        self.id = uuid.uuid4().hex[:12]
        self.queue_size = queue_size
        self._queue: asyncio.Queue = asyncio.Queue()
        self._open = True
        self._close_code: Optional[int] = None
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.id}>"

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        self._writer = asyncio.create_task(self._drain())

    def send(self, text: str) -> None:
        if not self._open:
            return
        if self._queue.qsize() >= self.queue_size:
            logger.debug("Send buffer full for %s, dropping frame", self.id)
            return
        self._queue.put_nowait(text)

    def close(self, code: int = NORMAL_CLOSURE) -> None:
        if not self._open:
            return
        self._open = False
        self._close_code = code
        # Sentinel: the writer flushes queued frames, then sends the close frame.
        self._queue.put_nowait(None)

    def detach(self) -> None:
        """Peer is gone: stop writing without sending a close frame."""
        self._open = False
        if self._writer and not self._writer.done():
            self._writer.cancel()

    async def _drain(self) -> None:
        while True:
            text = await self._queue.get()
            if text is None:
                break
            try:
                await self.ws.send_text(text)
            except Exception as e:
                logger.debug("Delivery to %s failed: %s", self.id, e)
                self._open = False
                return
        try:
            await self.ws.close(code=self._close_code or NORMAL_CLOSURE)
        except Exception as e:
            logger.debug("Close of %s failed: %s", self.id, e)

class ConnectionPool:
    """Every connection the transport currently holds, joined or anonymous."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def add(self, conn: Connection) -> None:
        self._connections[conn.id] = conn

    def discard(self, conn: Connection) -> None:
        self._connections.pop(conn.id, None)

    def snapshot(self) -> List[Connection]:
        return [c for c in self._connections.values() if c.is_open]

    def __len__(self) -> int:
        return len(self._connections)
