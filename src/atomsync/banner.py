"""Startup banner — mode-aware status output on stderr.

Detects ``NO_COLOR`` / ``TERM`` for safe fallback to plain text.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from atomsync.config import RelayConfig


# ---------------------------------------------------------------------------
# ANSI helpers: respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_MAGENTA = "\033[35m" if _COLOR else ""

_MODE_STYLES: dict[str, tuple[str, str]] = {
    "serve": (_CYAN, "serve"),
    "watch": (_GREEN, "watch"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def _limit(value: float | None, unit: str) -> str:
    return "off" if value is None else f"{value:g}{unit}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: RelayConfig,
    mode: str = "serve",
    *,
    url: str | None = None,
    warnings: list[str] | None = None,
) -> None:
    """Print the atomsync startup banner to stderr.

    Args:
        config: Resolved RelayConfig.
        mode: ``"serve"`` for the relay, ``"watch"`` for the CLI client.
        url: Address to show; defaults to ``config.url``.
        warnings: Optional list of warning messages to display.

    """
    from atomsync import __version__

    badge = _mode_badge(mode)
    header = f"  {_MAGENTA}{_BOLD}◆{_RESET}  atomsync {_DIM}v{__version__}{_RESET}  {badge}"

    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    if mode == "serve":
        queue = (
            str(config.outbound_queue_size) if config.outbound_queue_size > 0 else "unbounded"
        )
        lines.append(f"  {_DIM}├─{_RESET} max frame: {config.max_message_size} bytes")
        lines.append(f"  {_DIM}├─{_RESET} push queue: {queue}")
        lines.append(
            f"  {_DIM}└─{_RESET} keepalive: ping {_limit(config.ping_interval, 's')}, "
            f"timeout {_limit(config.ping_timeout, 's')}"
        )

    lines.append("")
    lines.append(f"  {_BOLD}{_CYAN}{url or config.url}{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
