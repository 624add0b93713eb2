#!/usr/bin/env python3
"""
app.py - Program entry glue shared by the offboard examples

Provides:
- Logging setup
- Argument parsing (one positional connection URL)
- Connect + discover
- run_program(): runs a flight coroutine and maps the outcome to an exit code

Usage:
    from offboard_examples.common import run_program, setup_logging

    async def flight(drone, config) -> bool:
        ...

    def main():
        setup_logging()
        sys.exit(run_program(flight, "What this program does"))
"""

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, List, Optional

from .config import DEFAULT_FLIGHT_CONFIG, FlightConfig
from .connection import USAGE, establish_connection
from .discovery import MavsdkPeerSource, discover
from .results import DiscoveryTimeout, OffboardExampleError

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

Flight = Callable[["System", FlightConfig], Awaitable[bool]]


def setup_logging(
    level: int = logging.INFO,
    format_string: str = "%(asctime)s [%(levelname)s] %(message)s",
    datefmt: str = "%H:%M:%S",
) -> logging.Logger:
    """
    Configure logging for the example programs.

    Args:
        level: Logging level (default: INFO).
        format_string: Log message format.
        datefmt: Date format string.

    Returns:
        logging.Logger: Configured root logger.
    """
    logging.basicConfig(
        level=level,
        format=format_string,
        datefmt=datefmt,
    )
    return logging.getLogger()


def log_banner(title: str, *lines: str) -> None:
    """Log a title framed by separator lines."""
    logger.info("=" * 50)
    logger.info(title)
    if lines:
        logger.info("=" * 50)
        for line in lines:
            logger.info(f"  {line}")
    logger.info("=" * 50)


class UsageExitParser(argparse.ArgumentParser):
    """Argument parser that prints the connection URL usage and exits 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        sys.stderr.write(f"{self.prog}: error: {message}\n{USAGE}\n")
        sys.exit(EXIT_FAILURE)


def create_argument_parser(description: str, prog: Optional[str] = None) -> UsageExitParser:
    """
    Create the standard argument parser.

    Args:
        description: Program description.
        prog: Program name shown in usage (default: from sys.argv).

    Returns:
        UsageExitParser: Parser with connection_url and --verbose.
    """
    parser = UsageExitParser(
        prog=prog,
        description=description,
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "connection_url",
        help="Connection URL, e.g. udp://:14540",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


async def connect_and_discover(
    url: str,
    config: Optional[FlightConfig] = None,
    system_factory=None,
) -> "System":
    """
    Open the connection and wait for an autopilot.

    Args:
        url: Connection URL.
        config: Timing configuration.
        system_factory: Callable creating the MAVSDK System.

    Returns:
        System: Connected MAVSDK System with a discovered autopilot.

    Raises:
        ConnectionFailed: If the URL is malformed or the transport fails.
        DiscoveryTimeout: If no autopilot announced itself in time.
    """
    config = config or DEFAULT_FLIGHT_CONFIG
    drone = await establish_connection(url, system_factory=system_factory)

    peer = await discover(MavsdkPeerSource(drone, identity=url), config.discovery_timeout)
    if peer is None:
        raise DiscoveryTimeout(f"No autopilot found within {config.discovery_timeout}s")

    logger.info("System is ready")
    return drone


async def _run(flight: Flight, url: str, config: FlightConfig, system_factory) -> int:
    try:
        drone = await connect_and_discover(url, config, system_factory)
        success = await flight(drone, config)
    except OffboardExampleError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    return EXIT_SUCCESS if success else EXIT_FAILURE


def run_program(
    flight: Flight,
    description: str,
    argv: Optional[List[str]] = None,
    config: Optional[FlightConfig] = None,
    system_factory=None,
) -> int:
    """
    Parse arguments, connect, discover and run a flight.

    Args:
        flight: Coroutine function called with (drone, config); returns success.
        description: Program description for --help.
        argv: Command line arguments (default: sys.argv[1:]).
        config: Timing configuration (default: DEFAULT_FLIGHT_CONFIG).
        system_factory: Callable creating the MAVSDK System.

    Returns:
        int: Process exit code (0 success, 1 failure).
    """
    parser = create_argument_parser(description)
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        return asyncio.run(
            _run(flight, args.connection_url, config or DEFAULT_FLIGHT_CONFIG, system_factory)
        )
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_FAILURE
