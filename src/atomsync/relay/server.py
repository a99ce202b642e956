"""Relay server — accepts WebSocket connections and binds each to a Session.

The relay owns the shared ``AtomRegistry`` for its lifetime.  Every
connection runs as its own task on the event loop; the registry guard is
the only serialization point between them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from websockets.asyncio.server import serve

from atomsync._errors import RelayError
from atomsync.config import RelayConfig
from atomsync.observability.collector import RelayCollector
from atomsync.observability.log import EventLog
from atomsync.relay.registry import AtomRegistry
from atomsync.relay.session import Session

if TYPE_CHECKING:
    from websockets.asyncio.server import Server, ServerConnection


def _format_peer(address: Any) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        return f"{address[0]}:{address[1]}"
    return str(address) if address is not None else ""


class RelayServer:
    """WebSocket relay for atom subscriptions and writes.

    Usage::

        async with RelayServer(RelayConfig(port=0)) as relay:
            print(relay.url)
            await relay.serve_forever()

    Args:
        config: Bind address, transport limits and queue bounds.
        registry: Registry to share (a fresh one when omitted).
        collector: Observability sink (a fresh one sized by
            ``config.max_events`` when omitted).

    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        *,
        registry: AtomRegistry | None = None,
        collector: RelayCollector | None = None,
    ) -> None:
        self.config = config if config is not None else RelayConfig()
        self.registry = registry if registry is not None else AtomRegistry()
        self.collector = (
            collector
            if collector is not None
            else RelayCollector(EventLog(self.config.max_events), verbose=self.config.verbose)
        )
        self._server: Server | None = None
        self._sessions: set[Session] = set()

    # ----- Introspection -----

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int:
        """The bound port (the configured one until started)."""
        if self._server is None:
            return self.config.port
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return self.config.port

    @property
    def url(self) -> str:
        return f"ws://{self.config.host}:{self.port}/"

    @property
    def sessions(self) -> frozenset[Session]:
        """Snapshot of live sessions."""
        return frozenset(self._sessions)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    # ----- Lifecycle -----

    async def start(self) -> None:
        """Bind the listening socket and begin accepting connections.

        Raises:
            RelayError: If the relay is already running or cannot bind.

        """
        if self._server is not None:
            msg = "relay is already running"
            raise RelayError(msg)
        try:
            self._server = await serve(
                self.handle_connection,
                self.config.host,
                self.config.port,
                max_size=self.config.max_message_size,
                ping_interval=self.config.ping_interval,
                ping_timeout=self.config.ping_timeout,
            )
        except OSError as exc:
            msg = f"Failed to bind relay on {self.config.host}:{self.config.port}: {exc}"
            raise RelayError(msg) from exc

    async def close(self) -> None:
        """Close every session, then the listening socket.  Idempotent."""
        server = self._server
        if server is None:
            return
        self._server = None
        for session in list(self._sessions):
            session.close("shutdown")
        server.close()
        await server.wait_closed()

    async def serve_forever(self) -> None:
        """Run until cancelled, starting the relay first if needed."""
        if self._server is None:
            await self.start()
        server = self._server
        assert server is not None
        try:
            await server.serve_forever()
        finally:
            await self.close()

    async def __aenter__(self) -> RelayServer:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ----- Connections -----

    async def handle_connection(self, connection: ServerConnection) -> None:
        """Bind *connection* to a new Session and drive it until disconnect."""
        session = Session(
            connection,
            self.registry,
            collector=self.collector,
            queue_size=self.config.outbound_queue_size,
        )
        self._sessions.add(session)
        self.collector.record_session_opened(
            session.id, peer=_format_peer(connection.remote_address),
        )
        try:
            await session.run()
        finally:
            self._sessions.discard(session)
