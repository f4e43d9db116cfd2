"""Command-line interface for the Red Bank collateralization monitor."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import load_config
from .errors import MonitorError
from .logging_setup import configure_logging
from .services import Monitor

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redbank-monitor",
        description="Collateralization monitor for Red Bank borrowers",
        epilog=(
            "The RPC environment variable overrides chain.rpc_endpoints and must be "
            "a Cosmos REST (LCD) URL such as https://lcd.osmosis.zone, "
            "not a Tendermint RPC endpoint."
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("monitor", help="Scan all borrowers whenever a new block is seen")
    sub.add_parser("scan", help="Scan all borrowers once and exit")
    check_parser = sub.add_parser("check", help="Report a single wallet")
    check_parser.add_argument("wallet", help="Borrower address, e.g. osmo1...")

    return parser


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and return the process exit code."""
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIG

    monitor = Monitor(config)

    if args.command == "monitor":
        await monitor.run_continuous()
        return EXIT_OK

    try:
        if args.command == "scan":
            report = await monitor.scan_once()
            return EXIT_FAILURE if report.borrowers_failed else EXIT_OK
        await monitor.check_wallet(args.wallet)
    except MonitorError as e:
        logger.error("%s failed: %s", args.command, e)
        return EXIT_FAILURE
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_FAILURE)

    configure_logging(args.log_level)
    try:
        code = asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Monitoring stopped")
        code = EXIT_OK
    sys.exit(code)


if __name__ == "__main__":
    main()
