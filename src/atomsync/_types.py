"""Shared type definitions for atomsync."""

import enum
from collections.abc import Callable
from typing import Any, Final, Literal, TypeAlias

# Opaque identifier of one shared value
AtomKey: TypeAlias = str

# Any JSON-serializable payload; the relay never inspects it
AtomValue: TypeAlias = Any

# Relay-assigned connection identifier
SessionID: TypeAlias = str

# Client-generated correlation token (advisory only)
MsgID: TypeAlias = str

# Wire discriminants
MessageType: TypeAlias = Literal["listen-to", "leave", "new-data"]

# Equality predicate used to suppress redundant publishes
EqualsFunc: TypeAlias = Callable[[Any, Any], bool]


class Absent(enum.Enum):
    """Marker for an atom that has never been written.

    Distinct from ``None``, which is a legitimate (JSON ``null``) value.
    """

    ABSENT = enum.auto()

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Final = Absent.ABSENT
