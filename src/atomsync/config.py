"""atomsync relay configuration.

RelayConfig is the central configuration object, frozen after creation.
"""

from dataclasses import dataclass

from atomsync._errors import ConfigError


@dataclass(frozen=True, slots=True)
class RelayConfig:
    """Configuration for an atomsync relay.

    Attributes:
        host: Bind address for the relay.
        port: Bind port for the relay (0 = pick an ephemeral port).
        max_message_size: Largest accepted WebSocket frame in bytes.
        ping_interval: Seconds between transport keepalive pings (None disables).
        ping_timeout: Seconds to wait for a pong before dropping the connection.
        outbound_queue_size: Per-session push queue bound (0 = unbounded).
            A session whose queue overflows is closed as a stalled consumer.
        max_events: Capacity of the observability event log.
        verbose: Print one stderr line per connection open/close.

    """

    host: str = "127.0.0.1"
    port: int = 8080
    max_message_size: int = 1 << 20
    ping_interval: float | None = 20.0
    ping_timeout: float | None = 20.0
    outbound_queue_size: int = 0
    max_events: int = 10_000
    verbose: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            msg = f"port must be between 0 and 65535, got {self.port}"
            raise ConfigError(msg)
        if self.max_message_size <= 0:
            msg = f"max_message_size must be positive, got {self.max_message_size}"
            raise ConfigError(msg)
        if self.outbound_queue_size < 0:
            msg = f"outbound_queue_size must be >= 0, got {self.outbound_queue_size}"
            raise ConfigError(msg)
        if self.max_events <= 0:
            msg = f"max_events must be positive, got {self.max_events}"
            raise ConfigError(msg)

    @property
    def url(self) -> str:
        """The ``ws://`` address clients connect to."""
        return f"ws://{self.host}:{self.port}/"
