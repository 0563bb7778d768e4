import json
import logging
from datetime import datetime, timezone
from typing import Callable, List

from app.core.config import settings
from app.schemas.envelopes import (
    EnvelopeType, ErrorEnvelope, Identity, LeaveEnvelope, UserListEnvelope, encode,
)
from app.services.connections import PROTOCOL_ERROR, Connection, ConnectionPool
from app.services.errors import (
    IncompleteChange, MalformedPayload, MissingIdentityFields, ProtocolError, UnauthenticatedAction,
)
from app.services.registry import SessionRegistry
from app.services.sanitizer import sanitize_envelope

logger = logging.getLogger(__name__)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class Relay:
    """Presence-aware broadcast router.

    Every handler runs to completion without awaiting, so on a single event
    loop each inbound message, close or error is one atomic step against the
    registry and the open-connection set. Delivery is left to the
    connections, whose ``send`` never blocks.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        pool: ConnectionPool,
        default_color: str = settings.DEFAULT_COLOR,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.pool = pool
        self.default_color = default_color
        self.clock = clock

    # transport events

    def on_open(self, conn: Connection) -> None:
        self.pool.add(conn)
        logger.info("Client %s connected. Connected clients: %d", conn.id, len(self.pool.snapshot()))

    def on_message(self, conn: Connection, raw: str | bytes) -> None:
        if not conn.is_open:
            logger.debug("Ignoring frame from closed connection %s", conn.id)
            return
        peers = self.pool.snapshot()
        try:
            envelope = sanitize_envelope(self._decode(raw), self.default_color)
            self._dispatch(conn, envelope, peers)
        except ProtocolError as e:
            logger.warning("Rejected message from %s: %s", conn.id, e.message)
            conn.send(encode(ErrorEnvelope(message=e.message)))
            if e.closes_connection:
                conn.close(PROTOCOL_ERROR)

    def on_close(self, conn: Connection) -> None:
        self.pool.discard(conn)
        identity = self.registry.remove(conn)
        logger.info("Client %s disconnected. Connected clients: %d", conn.id, len(self.pool.snapshot()))
        if identity is None:
            return

        peers = self.pool.snapshot()
        leave = LeaveEnvelope(
            username=identity.username,
            color=identity.color,
            timestamp=self.clock().isoformat(),
        )
        logger.info("%s left", identity.username)
        self._broadcast(peers, encode(leave))
        self._broadcast_presence(peers)

    def on_error(self, conn: Connection, exc: BaseException) -> None:
        logger.warning("Transport error on %s: %r", conn.id, exc)

    # presence

    def user_list(self) -> UserListEnvelope:
        return UserListEnvelope(users=tuple(self.registry.snapshot()))

    # dispatch

    def _decode(self, raw: str | bytes) -> dict:
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            envelope = json.loads(raw)
        except (UnicodeDecodeError, ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            raise MalformedPayload()
        if not isinstance(envelope, dict):
            raise MalformedPayload()
        return envelope

    def _encode_inbound(self, envelope: dict) -> str:
        try:
            return encode(envelope)
        except (ValueError, RecursionError):
            raise MalformedPayload()

    def _dispatch(self, conn: Connection, envelope: dict, peers: List[Connection]) -> None:
        # Encoded before any state changes so a frame that cannot be echoed mutates nothing.
        text = self._encode_inbound(envelope)
        kind = envelope.get("type")
        if kind == EnvelopeType.JOIN.value:
            self._join(conn, envelope, text, peers)
        elif kind == EnvelopeType.REQUEST_USERS.value:
            conn.send(encode(self.user_list()))
        elif kind == EnvelopeType.CHANGE.value:
            self._change(conn, envelope, text, peers)
        else:
            # "message" and any unknown tag: forwarded as-is once joined
            self._require_joined(conn)
            self._broadcast(peers, text)

    def _join(self, conn: Connection, envelope: dict, text: str, peers: List[Connection]) -> None:
        username, color = envelope.get("username"), envelope.get("color")
        if not username or not color:
            raise MissingIdentityFields()

        self.registry.register(conn, Identity(username=username, color=color))
        logger.info("%s joined as %s", conn.id, username)

        # Peers first, then the joiner's roster, then everyone's roster.
        self._broadcast([p for p in peers if p is not conn], text)
        conn.send(encode(self.user_list()))
        self._broadcast_presence(peers)

    def _change(self, conn: Connection, envelope: dict, text: str, peers: List[Connection]) -> None:
        previous = self._require_joined(conn)
        username, color = envelope.get("username"), envelope.get("color")
        if not username or not color:
            raise IncompleteChange()

        self._broadcast(peers, text)
        self.registry.register(conn, Identity(username=username, color=color))
        logger.info("%s changed identity from %s to %s", conn.id, previous.username, username)
        self._broadcast_presence(peers)

    def _require_joined(self, conn: Connection) -> Identity:
        identity = self.registry.lookup(conn)
        if identity is None:
            raise UnauthenticatedAction()
        return identity

    # delivery

    def _broadcast(self, peers: List[Connection], text: str) -> None:
        for peer in peers:
            if peer.is_open:
                peer.send(text)

    def _broadcast_presence(self, peers: List[Connection]) -> None:
        text = encode(self.user_list())
        self._broadcast([p for p in peers if p in self.registry], text)
