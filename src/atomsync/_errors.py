"""atomsync error hierarchy.

All atomsync-specific errors inherit from AtomSyncError for easy catching.
"""


class AtomSyncError(Exception):
    """Base error for all atomsync operations."""


class ConfigError(AtomSyncError):
    """Invalid or missing configuration."""


class ProtocolError(AtomSyncError):
    """A wire frame could not be turned into a message."""


class MalformedFrameError(ProtocolError):
    """Frame is not a well-formed message document (bad JSON, missing fields)."""


class UnknownMessageError(ProtocolError):
    """Frame parsed but carries an unrecognized ``type`` discriminant."""


class RelayError(AtomSyncError):
    """Error in the relay server (startup, binding)."""


class SyncError(AtomSyncError):
    """Error in the client sync adapter (connection use, binding lifecycle)."""
