"""Main CLI entry point for Flowtrail."""

from __future__ import annotations

import argparse
import logging
import sys

from flowtrail.cli.commands import build_config, check_config, send
from flowtrail.logging import configure_logging


def _add_collector_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--host", help="Collector host or URL (env: FLOWTRAIL_RECORDER_HOST)")
    parser.add_argument("--port", help="Collector port (env: FLOWTRAIL_RECORDER_PORT)")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-attempt timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Additional attempts on transient failure (default: 0)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="flowtrail",
        description="Flowtrail - flow instance state recording CLI",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    snapshot_parser = subparsers.add_parser("snapshot", help="Send a snapshot document to the collector")
    snapshot_parser.add_argument("file", help="JSON envelope with snapshotData ('-' for stdin)")
    _add_collector_args(snapshot_parser)

    step_parser = subparsers.add_parser("step", help="Send a step document to the collector")
    step_parser.add_argument("file", help="JSON envelope with stepData ('-' for stdin)")
    _add_collector_args(step_parser)

    check_parser = subparsers.add_parser("check-config", help="Resolve and print the collector configuration")
    _add_collector_args(check_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(
        json_format=args.json_logs,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    config = build_config(args.host, args.port, args.timeout, args.retries)

    if args.command == "check-config":
        return check_config(config)
    return send(args.command, args.file, config)


if __name__ == "__main__":
    sys.exit(main())
