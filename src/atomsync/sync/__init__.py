"""Client sync adapter — mirror remote atoms into local reactive values."""

from atomsync.sync.binding import RemoteBinding, atom_key
from atomsync.sync.client import DEFAULT_URL, SyncClient
from atomsync.sync.equality import structurally_equal
from atomsync.sync.local import LocalAtom

__all__ = [
    "DEFAULT_URL",
    "LocalAtom",
    "RemoteBinding",
    "SyncClient",
    "atom_key",
    "structurally_equal",
]
