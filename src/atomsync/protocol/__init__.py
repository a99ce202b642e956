"""Wire protocol — message shapes and JSON frame codec."""

from atomsync.protocol.codec import (
    LEAVE,
    LISTEN_TO,
    MESSAGE_TYPES,
    NEW_DATA,
    Leave,
    ListenTo,
    Message,
    NewData,
    decode,
    encode,
    new_msg_id,
)

__all__ = [
    "LEAVE",
    "LISTEN_TO",
    "MESSAGE_TYPES",
    "NEW_DATA",
    "Leave",
    "ListenTo",
    "Message",
    "NewData",
    "decode",
    "encode",
    "new_msg_id",
]
