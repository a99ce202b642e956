"""atomsync — Real-time shared atoms over WebSockets.

A relay holds named, mutable values ("atoms").  Clients subscribe to atom
keys, write new values, and receive every write any client makes.  On the
client, a remote atom is mirrored into a local reactive value.

Quick start::

    import atomsync

    atomsync.serve()                  # Run a relay on ws://127.0.0.1:8080/

Client side::

    from atomsync import LocalAtom, SyncClient

    async with SyncClient("ws://127.0.0.1:8080/") as client:
        messages = LocalAtom([])
        client.bind("Messages/General", messages)
        messages.update(lambda ms: [*ms, {"author": "ada", "content": "hi"}])

Components:

    protocol    Wire codec        (listen-to / leave / new-data frames)
    relay       Relay server      (registry, sessions, WebSocket server)
    sync        Client adapter    (SyncClient, LocalAtom, RemoteBinding)

"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from atomsync.config import RelayConfig
    from atomsync.relay.registry import AtomRegistry
    from atomsync.relay.server import RelayServer
    from atomsync.sync.binding import RemoteBinding
    from atomsync.sync.client import SyncClient
    from atomsync.sync.local import LocalAtom

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "ABSENT",
    "AtomRegistry",
    "LocalAtom",
    "RelayConfig",
    "RelayServer",
    "RemoteBinding",
    "SyncClient",
    "__version__",
    "atom_key",
    "publish",
    "serve",
    "watch",
]

_LAZY: dict[str, tuple[str, str]] = {
    "ABSENT": ("atomsync._types", "ABSENT"),
    "AtomRegistry": ("atomsync.relay.registry", "AtomRegistry"),
    "LocalAtom": ("atomsync.sync.local", "LocalAtom"),
    "RelayConfig": ("atomsync.config", "RelayConfig"),
    "RelayServer": ("atomsync.relay.server", "RelayServer"),
    "RemoteBinding": ("atomsync.sync.binding", "RemoteBinding"),
    "SyncClient": ("atomsync.sync.client", "SyncClient"),
    "atom_key": ("atomsync.sync.binding", "atom_key"),
    "publish": ("atomsync.app", "publish"),
    "serve": ("atomsync.app", "serve"),
    "watch": ("atomsync.app", "watch"),
}


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import atomsync`` fast; nothing touches websockets until a
    relay or client is actually requested.
    """
    target = _LAZY.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    module_name, attr = target
    return getattr(importlib.import_module(module_name), attr)
