"""Sync client — one persistent relay connection shared by many bindings.

Outbound messages are queued and written by a background task, so
``listen`` and ``publish`` are plain synchronous calls usable from atom
listeners.  Messages queued before ``connect()`` are flushed once the
connection opens.  Inbound ``new-data`` pushes are dispatched to every
handler registered for their key.

There is no reconnection: once the connection drops, the client is closed
and further use raises ``SyncError``.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from collections import defaultdict
from typing import TYPE_CHECKING, Any, TypeAlias

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from atomsync._errors import ProtocolError, SyncError
from atomsync.protocol.codec import Leave, ListenTo, NewData, decode, encode
from atomsync.sync.binding import RemoteBinding
from atomsync.sync.equality import structurally_equal

if TYPE_CHECKING:
    from collections.abc import Callable

    from websockets.asyncio.client import ClientConnection

    from atomsync._types import AtomKey, AtomValue, EqualsFunc
    from atomsync.protocol.codec import Message
    from atomsync.sync.local import LocalAtom

DEFAULT_URL = "ws://127.0.0.1:8080/"

# handler(new_value)
ValueHandler: TypeAlias = "Callable[[Any], None]"


class SyncClient:
    """Client side of the atomsync protocol.

    Usage::

        async with SyncClient("ws://localhost:8080/") as client:
            users = LocalAtom([])
            client.bind(atom_key("usersInChannel", "Channel A"), users)
            users.update(lambda us: ["ada", *us])

    Args:
        url: Relay address.
        max_message_size: Largest accepted inbound frame in bytes.

    """

    def __init__(self, url: str = DEFAULT_URL, *, max_message_size: int = 1 << 20) -> None:
        self.url = url
        self.max_message_size = max_message_size
        self.frames_discarded = 0
        self.frames_unsent = 0
        self._handlers: defaultdict[AtomKey, list[ValueHandler]] = defaultdict(list)
        # last value pushed for each listened key, replayed to late handlers
        self._latest: dict[AtomKey, Any] = {}
        self._outbox: asyncio.Queue[str] = asyncio.Queue()
        self._connection: ClientConnection | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._closed = False
        self._disconnected = asyncio.Event()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open" if self.connected else "idle"
        return f"SyncClient({self.url!r}, {state}, keys={len(self._handlers)})"

    @property
    def connected(self) -> bool:
        return self._connection is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def listening_keys(self) -> frozenset[AtomKey]:
        """Keys with at least one registered handler."""
        return frozenset(self._handlers)

    # ----- Lifecycle -----

    async def connect(self) -> None:
        """Open the connection and start the reader and writer tasks.

        Raises:
            SyncError: If the client is closed, already connected, or the
                relay cannot be reached.

        """
        if self._closed:
            msg = "client is closed"
            raise SyncError(msg)
        if self._connection is not None:
            msg = "client is already connected"
            raise SyncError(msg)
        try:
            self._connection = await connect(self.url, max_size=self.max_message_size)
        except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as exc:
            msg = f"Failed to connect to {self.url}: {exc}"
            raise SyncError(msg) from exc
        self._tasks = [
            asyncio.create_task(self._read_loop(), name="atomsync-client-reader"),
            asyncio.create_task(self._write_loop(), name="atomsync-client-writer"),
        ]

    async def close(self) -> None:
        """Close the connection and stop background tasks.  Idempotent.

        Messages still queued are discarded; await ``drain()`` first to
        flush them.
        """
        self._closed = True
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []
        self.frames_unsent += self._abandon_outbox()
        if self._connection is not None:
            await self._connection.close()
        self._disconnected.set()

    async def wait_closed(self) -> None:
        """Wait until the relay drops the connection or ``close()`` runs."""
        await self._disconnected.wait()

    async def drain(self) -> None:
        """Wait until every queued message has been written.

        Raises:
            SyncError: If the connection closed with messages still queued.

        """
        unsent = self.frames_unsent
        await self._outbox.join()
        if self.frames_unsent > unsent:
            lost = self.frames_unsent - unsent
            msg = f"connection closed before {lost} queued messages were sent"
            raise SyncError(msg)

    async def __aenter__(self) -> SyncClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ----- Subscriptions -----

    def listen(self, key: AtomKey, handler: ValueHandler) -> Callable[[], None]:
        """Call *handler* with every value pushed for *key*.

        The first handler for a key sends ``listen-to``; later handlers are
        called right away with the last value received for the key, if any.
        Removing the last handler sends ``leave``.

        Returns:
            A callable that removes this handler.

        """
        self._ensure_open()
        handlers = self._handlers[key]
        handlers.append(handler)
        if len(handlers) == 1:
            self._send(ListenTo(key))
        elif key in self._latest:
            self._call(handler, key, self._latest[key])

        removed = False

        def unlisten() -> None:
            nonlocal removed
            if removed:
                return
            removed = True
            current = self._handlers.get(key)
            if current is None:
                return
            for i, existing in enumerate(current):
                if existing is handler:
                    del current[i]
                    break
            if not current:
                del self._handlers[key]
                self._latest.pop(key, None)
                if not self._closed:
                    self._send(Leave(key))

        return unlisten

    def publish(self, key: AtomKey, value: AtomValue) -> None:
        """Write *value* to *key* on the relay."""
        self._ensure_open()
        self._send(NewData(key, value))

    def bind(
        self,
        key: AtomKey,
        atom: LocalAtom,
        *,
        equals: EqualsFunc = structurally_equal,
    ) -> RemoteBinding:
        """Create and activate a binding of *atom* to *key*."""
        binding = RemoteBinding(self, key, atom, equals=equals)
        binding.activate()
        return binding

    # ----- Frames -----

    def handle_frame(self, frame: str | bytes) -> None:
        """Dispatch one inbound frame.

        Undecodable frames and non-push messages are discarded and counted.
        """
        try:
            message = decode(frame)
        except ProtocolError as exc:
            self._discard(str(exc))
            return
        if not isinstance(message, NewData):
            self._discard(f"unexpected {message.type} from relay")
            return
        handlers = self._handlers.get(message.atom_id)
        if not handlers:
            return
        self._latest[message.atom_id] = message.new_data
        for handler in list(handlers):
            self._call(handler, message.atom_id, message.new_data)

    def _call(self, handler: ValueHandler, key: AtomKey, value: Any) -> None:
        try:
            handler(value)
        except Exception as exc:
            print(f"  Handler error for {key!r}: {exc}", file=sys.stderr)

    def _discard(self, detail: str) -> None:
        self.frames_discarded += 1
        print(f"  Frame discarded: {detail}", file=sys.stderr)

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "client is closed"
            raise SyncError(msg)

    def _send(self, message: Message) -> None:
        self._outbox.put_nowait(encode(message))

    async def _read_loop(self) -> None:
        connection = self._connection
        assert connection is not None
        try:
            async for frame in connection:
                self.handle_frame(frame)
        except ConnectionClosed:
            pass
        finally:
            self._closed = True
            self._disconnected.set()

    async def _write_loop(self) -> None:
        connection = self._connection
        assert connection is not None
        while True:
            frame = await self._outbox.get()
            try:
                await connection.send(frame)
            except ConnectionClosed:
                self.frames_unsent += 1 + self._abandon_outbox()
                self._closed = True
                self._disconnected.set()
                return
            finally:
                self._outbox.task_done()

    def _abandon_outbox(self) -> int:
        """Drop every queued frame so ``drain()`` waiters wake up."""
        dropped = 0
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()
            dropped += 1
        return dropped
