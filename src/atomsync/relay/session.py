"""Connection session — per-connection protocol handler on the relay.

One ``Session`` exists per live connection.  It decodes inbound frames,
applies them to the shared ``AtomRegistry`` and fans writes out to every
recipient session's outbound queue.  A dedicated writer task drains the
queue to the transport, so pushing to a slow client never blocks the
session that wrote.

State machine::

    CONNECTED ──(transport closed | stalled | shutdown)──▶ CLOSED

``handle_frame`` is synchronous: a frame's registry mutation and the
enqueueing of its whole fan-out happen without yielding to the event loop,
so no other session can observe a partially delivered write.

"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import time
import uuid
from typing import TYPE_CHECKING, Protocol

from websockets.exceptions import ConnectionClosed

from atomsync._errors import MalformedFrameError, UnknownMessageError
from atomsync._types import ABSENT
from atomsync.observability.collector import RelayCollector
from atomsync.protocol.codec import Leave, ListenTo, NewData, decode, encode

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from atomsync._types import AtomKey, AtomValue, SessionID
    from atomsync.relay.registry import AtomRegistry


class Transport(Protocol):
    """What a session needs from its connection.

    ``websockets.asyncio.server.ServerConnection`` satisfies it directly.
    """

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...


class SessionState(enum.Enum):
    """Lifecycle of a session; CLOSED is terminal."""

    CONNECTED = "connected"
    CLOSED = "closed"


class Session:
    """Server-side protocol state for one connection.

    Sessions hash by identity, so the registry can use them directly as
    subscriber handles.

    Args:
        transport: The connection frames are read from and written to.
        registry: Shared atom registry.
        collector: Observability sink for session and atom events.
        queue_size: Outbound queue bound (0 = unbounded).  Overflow closes
            the session as a stalled consumer.
        session_id: Explicit identifier (random when omitted).

    """

    def __init__(
        self,
        transport: Transport,
        registry: AtomRegistry,
        *,
        collector: RelayCollector | None = None,
        queue_size: int = 0,
        session_id: SessionID | None = None,
    ) -> None:
        self.id: SessionID = session_id or uuid.uuid4().hex[:12]
        self.transport = transport
        self.state = SessionState.CONNECTED
        # atom key -> listener id, mirrors this session's registry subscriptions
        self.subscriptions: dict[AtomKey, str] = {}
        self._registry = registry
        self._collector = collector if collector is not None else RelayCollector()
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._frames_received = 0
        self._close_reason = "disconnect"

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, state={self.state.value}, atoms={len(self.subscriptions)})"

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def pending(self) -> int:
        """Frames queued but not yet written to the transport."""
        return self._outbox.qsize()

    # ----- Lifecycle -----

    async def run(self) -> None:
        """Drive the session until the transport closes.

        Always ends with the session CLOSED and unregistered from every atom.
        """
        self._writer = asyncio.create_task(self._write_loop(), name=f"atomsync-writer-{self.id}")
        reason = "disconnect"
        try:
            async for frame in self.transport:
                self.handle_frame(frame)
        except ConnectionClosed:
            reason = "transport_error"
        finally:
            self.close(reason)
            writer = self._writer
            if not writer.done() and self._close_reason != "stalled":
                writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer

    def close(self, reason: str = "disconnect") -> None:
        """Move to CLOSED and drop every subscription.

        Idempotent: only the first call records a reason and cleans up.
        """
        if self.closed:
            return
        self.state = SessionState.CLOSED
        self._close_reason = reason
        dropped = self._registry.drop_session(self)
        self.subscriptions.clear()
        if reason == "stalled" and self._writer is not None:
            # The writer owns the transport; it closes it on cancellation.
            self._writer.cancel()
        self._collector.record_session_closed(
            self.id,
            reason=reason,
            subscriptions_dropped=dropped,
            frames_received=self._frames_received,
        )

    async def _write_loop(self) -> None:
        try:
            while True:
                frame = await self._outbox.get()
                await self.transport.send(frame)
        except ConnectionClosed:
            return
        except asyncio.CancelledError:
            if self._close_reason == "stalled":
                await self.transport.close()
            raise

    # ----- Inbound -----

    def handle_frame(self, frame: str | bytes) -> None:
        """Decode one inbound frame and apply it.

        Undecodable frames are recorded and dropped; the session stays open.
        """
        if self.closed:
            return
        self._frames_received += 1
        try:
            message = decode(frame)
        except UnknownMessageError as exc:
            self._collector.record_discard(self.id, reason="unknown_type", detail=str(exc))
            return
        except MalformedFrameError as exc:
            self._collector.record_discard(self.id, reason="malformed", detail=str(exc))
            return

        if isinstance(message, ListenTo):
            self._listen(message.atom_id)
        elif isinstance(message, Leave):
            self._leave(message.atom_id)
        elif isinstance(message, NewData):
            self._write(message.atom_id, message.new_data)

    def _listen(self, key: AtomKey) -> None:
        value = self._registry.subscribe(self, key)
        self.subscriptions.setdefault(key, uuid.uuid4().hex[:8])
        caught_up = value is not ABSENT
        if caught_up:
            self.push(key, value)
        self._collector.record_subscribe(self.id, key, caught_up=caught_up)

    def _leave(self, key: AtomKey) -> None:
        removed = self._registry.unsubscribe(self, key)
        self.subscriptions.pop(key, None)
        self._collector.record_leave(self.id, key, was_subscribed=removed)

    def _write(self, key: AtomKey, value: AtomValue) -> None:
        t0 = time.perf_counter()
        recipients = self._registry.write(key, value)
        frame = encode(NewData(key, value))
        delivered = 0
        for peer in recipients:
            if isinstance(peer, Session) and peer._enqueue(frame, key):
                delivered += 1
        self._collector.record_write(
            self.id,
            key,
            recipients=delivered,
            duration_ms=(time.perf_counter() - t0) * 1000,
        )

    # ----- Outbound -----

    def push(self, key: AtomKey, value: AtomValue) -> bool:
        """Queue a ``new-data`` push of *value* for *key* to this client.

        Returns:
            False if the session is closed or was just closed as stalled.

        """
        return self._enqueue(encode(NewData(key, value)), key)

    def _enqueue(self, frame: str, key: AtomKey) -> bool:
        if self.closed:
            return False
        try:
            self._outbox.put_nowait(frame)
        except asyncio.QueueFull:
            self._collector.record_push_dropped(self.id, key)
            self.close("stalled")
            return False
        return True
