"""
Command-line entry point.

This is the single place that turns errors into exit codes:

- `0`: graceful shutdown after SIGINT/SIGTERM
- `1`: any fatal configuration, connection, health, sample data, metrics or teardown error
- `130`: interrupted before signal handlers were installed
"""

import argparse
import asyncio
from typing import List, Optional

from mongodb_client import __version__
from mongodb_client.config import settings
from mongodb_client.errors import MongoDBClientError
from mongodb_client.main import RunOptions, run
from mongodb_client.managers.logging_manager import get_logger, setup_logging
from mongodb_client.managers.stop_signal import StopSignal
from mongodb_client.services.metrics_server import DEFAULT_LISTEN, parse_listen_address
from mongodb_client.utils.logging_utils import log_error_with_context

logger = get_logger()


def _listen_address(value: str) -> str:
    if not value:
        return value
    try:
        parse_listen_address(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongodb-client",
        description="Connect to MongoDB, run sample operations and keep a reconciliation loop alive.",
    )
    parser.add_argument("--dry-run", action="store_true", default=False, help="Perform no actions")
    parser.add_argument(
        "--listen",
        type=_listen_address,
        default=DEFAULT_LISTEN,
        help="The address to serve metrics on (empty to disable)",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Log level (default: %(default)s)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Shortcut for --log-level DEBUG")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def _serve(options: RunOptions) -> None:
    stop = StopSignal()
    stop.install_signal_handlers()
    try:
        await run(options, stop)
    finally:
        stop.remove_signal_handlers()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else args.log_level)

    options = RunOptions(listen=args.listen, dry_run=args.dry_run)
    try:
        asyncio.run(_serve(options))
    except MongoDBClientError as e:
        log_error_with_context(e, {"exit_code": 1, "listen": options.listen, "dry_run": options.dry_run})
        logger.critical("Exiting: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    return 0
