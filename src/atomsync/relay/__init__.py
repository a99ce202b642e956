"""Relay — registry, per-connection sessions and the WebSocket server."""

from atomsync.relay.registry import AtomRecord, AtomRegistry
from atomsync.relay.server import RelayServer
from atomsync.relay.session import Session, SessionState, Transport

__all__ = [
    "AtomRecord",
    "AtomRegistry",
    "RelayServer",
    "Session",
    "SessionState",
    "Transport",
]
