"""Tests for atomsync.banner — startup banner output."""

from __future__ import annotations

import io
import sys
from unittest.mock import patch

from atomsync.banner import print_banner
from atomsync.config import RelayConfig


class TestPrintBanner:
    """Tests for the startup banner."""

    def _capture_banner(self, config: RelayConfig | None = None, **kwargs: object) -> str:
        """Call print_banner and capture stderr output."""
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            print_banner(config or RelayConfig(), **kwargs)  # type: ignore[arg-type]
        return buf.getvalue()

    def test_serve_mode_banner(self) -> None:
        output = self._capture_banner(mode="serve")
        assert "atomsync" in output
        assert "0.1.0" in output
        assert "max frame: 1048576 bytes" in output
        assert "push queue: unbounded" in output
        assert "ping 20s" in output
        assert "ws://127.0.0.1:8080/" in output

    def test_bounded_queue_and_keepalive_off(self) -> None:
        config = RelayConfig(outbound_queue_size=32, ping_interval=None, ping_timeout=None)
        output = self._capture_banner(config, mode="serve")
        assert "push queue: 32" in output
        assert "ping off, timeout off" in output

    def test_url_override(self) -> None:
        output = self._capture_banner(mode="serve", url="ws://127.0.0.1:54321/")
        assert "ws://127.0.0.1:54321/" in output
        assert ":8080" not in output

    def test_watch_mode_omits_relay_limits(self) -> None:
        output = self._capture_banner(mode="watch", url="ws://relay:9000/")
        assert "watch" in output
        assert "push queue" not in output
        assert "ws://relay:9000/" in output

    def test_warnings_shown(self) -> None:
        output = self._capture_banner(warnings=["listening on all interfaces"])
        assert "listening on all interfaces" in output
