"""Wire codec — the three atomsync message shapes and their JSON frames.

Every message travels as one self-describing JSON document per WebSocket
text frame, discriminated by its ``type`` field::

    {"type": "listen-to", "atomId": "k"}
    {"type": "leave",     "atomId": "k", "msgId": "4821..."}
    {"type": "new-data",  "atomId": "k", "msgId": "4821...", "newData": <any>}

``new-data`` is bidirectional: client to relay it is a write, relay to client
it is a push of the current value.  ``msgId`` is advisory; it is emitted on
encode but optional on decode.

``newData`` is opaque: the codec never inspects it beyond JSON decoding.
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeAlias

from atomsync._errors import MalformedFrameError, UnknownMessageError
from atomsync._types import AtomKey, AtomValue, MsgID

LISTEN_TO = "listen-to"
LEAVE = "leave"
NEW_DATA = "new-data"

MESSAGE_TYPES = frozenset({LISTEN_TO, LEAVE, NEW_DATA})

_rng = random.SystemRandom()


def new_msg_id() -> MsgID:
    """Return a random decimal-digit correlation token."""
    return str(_rng.randrange(10**15, 10**16))


@dataclass(frozen=True, slots=True)
class ListenTo:
    """Client asks to subscribe to an atom."""

    atom_id: AtomKey

    type: ClassVar[str] = LISTEN_TO


@dataclass(frozen=True, slots=True)
class Leave:
    """Client asks to unsubscribe from an atom."""

    atom_id: AtomKey
    msg_id: MsgID = field(default_factory=new_msg_id, compare=False)

    type: ClassVar[str] = LEAVE


@dataclass(frozen=True, slots=True)
class NewData:
    """A write (client to relay) or a push (relay to client)."""

    atom_id: AtomKey
    new_data: AtomValue
    msg_id: MsgID = field(default_factory=new_msg_id, compare=False)

    type: ClassVar[str] = NEW_DATA


Message: TypeAlias = ListenTo | Leave | NewData


def encode(message: Message) -> str:
    """Serialize a message to a single compact JSON frame.

    Raises:
        TypeError: If ``new_data`` is not JSON-serializable.

    """
    doc: dict[str, Any] = {"type": message.type, "atomId": message.atom_id}
    if isinstance(message, Leave):
        doc["msgId"] = message.msg_id
    elif isinstance(message, NewData):
        doc["msgId"] = message.msg_id
        doc["newData"] = message.new_data
    # ASCII escapes keep lone surrogates in payloads encodable as UTF-8.
    return json.dumps(doc, separators=(",", ":"))


def decode(frame: str | bytes) -> Message:
    """Parse one frame into a message.

    Raises:
        MalformedFrameError: Unparseable JSON, a non-object document, or a
            missing/ill-typed field.
        UnknownMessageError: A missing or unrecognized ``type``.

    """
    if isinstance(frame, bytes | bytearray | memoryview):
        try:
            frame = bytes(frame).decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"frame is not valid UTF-8: {exc}"
            raise MalformedFrameError(msg) from exc

    try:
        doc = json.loads(frame)
    except json.JSONDecodeError as exc:
        msg = f"frame is not valid JSON: {exc}"
        raise MalformedFrameError(msg) from exc
    except RecursionError as exc:
        msg = "frame is nested too deeply"
        raise MalformedFrameError(msg) from exc

    if not isinstance(doc, dict):
        msg = f"frame must be a JSON object, got {type(doc).__name__}"
        raise MalformedFrameError(msg)

    msg_type = doc.get("type")
    if not isinstance(msg_type, str) or msg_type not in MESSAGE_TYPES:
        msg = f"unknown message type: {msg_type!r}"
        raise UnknownMessageError(msg)

    atom_id = doc.get("atomId")
    if not isinstance(atom_id, str):
        msg = f"{msg_type}: atomId must be a string, got {type(atom_id).__name__}"
        raise MalformedFrameError(msg)

    if msg_type == LISTEN_TO:
        return ListenTo(atom_id)

    msg_id = doc.get("msgId")
    if msg_id is None:
        msg_id = new_msg_id()
    elif not isinstance(msg_id, str):
        msg = f"{msg_type}: msgId must be a string, got {type(msg_id).__name__}"
        raise MalformedFrameError(msg)

    if msg_type == LEAVE:
        return Leave(atom_id, msg_id=msg_id)

    if "newData" not in doc:
        msg = "new-data: missing newData"
        raise MalformedFrameError(msg)
    return NewData(atom_id, doc["newData"], msg_id=msg_id)
