"""atomsync entry points — run a relay, watch an atom, publish a value.

The three public functions (serve, watch, publish) block until done and
are what the CLI dispatches to.
"""

import asyncio
import contextlib
import json
import signal
import sys
from pathlib import Path
from typing import Any

from atomsync.banner import print_banner
from atomsync.config import RelayConfig
from atomsync.config_loader import load_config
from atomsync.observability.events import FrameDiscarded, SessionOpened
from atomsync.relay.server import RelayServer
from atomsync.sync.client import DEFAULT_URL, SyncClient
from atomsync.sync.local import LocalAtom


def _install_stop_signals(stop: asyncio.Event) -> None:
    """Set *stop* on SIGINT/SIGTERM where the loop supports it."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Windows event loops do not implement add_signal_handler.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)


async def run_relay(config: RelayConfig, *, stop: asyncio.Event | None = None) -> RelayServer:
    """Run a relay until *stop* is set (or a stop signal arrives).

    Returns the closed RelayServer so callers can inspect its registry
    and event log.
    """
    if stop is None:
        stop = asyncio.Event()
        _install_stop_signals(stop)

    relay = RelayServer(config)
    await relay.start()
    print_banner(config, mode="serve", url=relay.url)
    try:
        await stop.wait()
    finally:
        await relay.close()
        _print_relay_summary(relay)
    return relay


def _print_relay_summary(relay: RelayServer) -> None:
    stats = relay.registry.stats()
    log = relay.collector.log
    lines = [
        "",
        "─" * 41,
        f"  Relay stopped: {stats['atoms_with_value']} atoms held",
        f"  {log.count(SessionOpened)} sessions served, "
        f"{log.count(FrameDiscarded)} frames discarded",
    ]
    print("\n".join(lines), file=sys.stderr)


def serve(root: str | Path = ".", **kwargs: object) -> None:
    """Run the relay in the foreground until interrupted.

    Args:
        root: Directory searched for atomsync.yaml / atomsync.toml.
        **kwargs: Override RelayConfig fields.

    """
    config = load_config(Path(root), **kwargs)
    asyncio.run(run_relay(config))


async def _watch(url: str, key: str) -> None:
    stop = asyncio.Event()
    _install_stop_signals(stop)

    def _print_value(new: Any, _old: Any) -> None:
        print(json.dumps(new, ensure_ascii=False), flush=True)

    async with SyncClient(url) as client:
        atom = LocalAtom()
        atom.subscribe(_print_value)
        with client.bind(key, atom):
            closed = asyncio.create_task(client.wait_closed())
            stopped = asyncio.create_task(stop.wait())
            _done, pending = await asyncio.wait(
                {closed, stopped}, return_when=asyncio.FIRST_COMPLETED,
            )
            for task in pending:
                task.cancel()


def watch(key: str, url: str = DEFAULT_URL) -> None:
    """Print every value pushed for *key* as one JSON line on stdout."""
    print_banner(RelayConfig(), mode="watch", url=url)
    asyncio.run(_watch(url, key))


async def _publish(url: str, key: str, value: Any) -> None:
    async with SyncClient(url) as client:
        client.publish(key, value)
        await client.drain()


def publish(key: str, value: Any, url: str = DEFAULT_URL) -> None:
    """Write one value to *key* and return once it has been sent."""
    asyncio.run(_publish(url, key, value))
