"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m orderboard                     # 127.0.0.1:8080, ./granola.db
    python -m orderboard --port 3000
    python -m orderboard --db /var/lib/orderboard/board.db --seed 0
    orderboard --log-level DEBUG --log-format json

Every flag defaults to the matching ORDERBOARD_* environment variable, and
then to the built-in default.

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig, LOG_FORMATS, LOG_LEVELS
from .server import OrderBoardServer
from .store import OrderStore, StorageError, seed_sample_orders


logger = logging.getLogger("orderboard")


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orderboard",
        description="Peer-to-peer order board over HTTP, backed by SQLite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  orderboard                          # Run with defaults
  orderboard --port 3000              # Custom port
  orderboard --host 0.0.0.0           # Listen on all interfaces
  orderboard --db ./board.db --seed 0 # Custom database, no sample orders
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help="Per-connection socket timeout in seconds (default: none)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--db", "-d",
        default=defaults.database_path,
        help=f"SQLite database file (default: {defaults.database_path})"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=defaults.seed_count,
        help=f"Sample orders to create when the board is empty (default: {defaults.seed_count})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"orderboard {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace, defaults: ServerConfig) -> ServerConfig:
    return ServerConfig(
        host=args.host,
        port=args.port,
        backlog=defaults.backlog,
        read_buffer_size=defaults.read_buffer_size,
        timeout=args.timeout,
        database_path=args.db,
        seed_count=args.seed,
        log_level=args.log_level,
        log_format=args.log_format,
        access_log=defaults.access_log,
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: bad ORDERBOARD_* environment variable: {e}", file=sys.stderr)
        return 2

    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    config = config_from_args(args, defaults)

    try:
        config.validate()
    except ValueError as e:
        parser.error(str(e))

    store = OrderStore(config.database_path)
    server = OrderBoardServer(config, store=store)

    try:
        # Logging first so seeding is visible
        server.setup_logging()
        store.initialize()
        seed_sample_orders(store, config.seed_count)
    except StorageError as e:
        logger.error(f"Could not open order store {config.database_path}: {e}")
        return 1

    server.print_banner()

    try:
        server.run(configure_logging=False)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
