"""atomsync CLI — atomsync serve / atomsync watch / atomsync publish.

Entry point for the ``atomsync`` command-line interface.
"""

from __future__ import annotations

import argparse
import json
import sys

from atomsync._errors import AtomSyncError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the atomsync CLI."""
    from atomsync.sync.client import DEFAULT_URL

    parser = argparse.ArgumentParser(
        prog="atomsync",
        description="Real-time shared atoms over WebSockets.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # atomsync serve
    serve_parser = subparsers.add_parser("serve", help="Run the relay server")
    serve_parser.add_argument(
        "--config", default=".", help="Directory containing atomsync.yaml/.toml",
    )
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--queue-size", type=int, default=None, dest="outbound_queue_size",
        help="Per-session push queue bound (0 = unbounded)",
    )
    serve_parser.add_argument(
        "--verbose", action="store_true", default=None,
        help="Print connection open/close lines",
    )

    # atomsync watch
    watch_parser = subparsers.add_parser("watch", help="Print every value of an atom")
    watch_parser.add_argument("key", help="Atom key")
    watch_parser.add_argument("--url", default=DEFAULT_URL, help="Relay address")

    # atomsync publish
    publish_parser = subparsers.add_parser("publish", help="Write one value to an atom")
    publish_parser.add_argument("key", help="Atom key")
    publish_parser.add_argument("value", help="JSON value to write")
    publish_parser.add_argument("--url", default=DEFAULT_URL, help="Relay address")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from atomsync import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from atomsync.app import publish, serve, watch

    try:
        if args.command == "serve":
            serve(
                root=args.config,
                host=args.host,
                port=args.port,
                outbound_queue_size=args.outbound_queue_size,
                verbose=args.verbose,
            )
        elif args.command == "watch":
            watch(args.key, url=args.url)
        elif args.command == "publish":
            try:
                value = json.loads(args.value)
            except json.JSONDecodeError as exc:
                parser.error(f"value is not valid JSON: {exc}")
            publish(args.key, value, url=args.url)
    except AtomSyncError as exc:
        print(f"atomsync: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
