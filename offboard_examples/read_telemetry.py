#!/usr/bin/env python3
"""
read_telemetry.py - Polled Telemetry Example

Reads the current value of every telemetry quantity (position, home,
attitude, velocity, GPS, battery, actuators, flight mode, landed state,
in-air) ten times, half a second apart, and prints each one. Quantities
the vehicle does not publish are skipped.

Usage:
    python3 -m offboard_examples.read_telemetry <connection_url>

Example:
    python3 -m offboard_examples.read_telemetry udp://:14540
"""

import asyncio
import logging
import sys

from offboard_examples.common import (
    FlightConfig,
    poll_loop,
    run_program,
    setup_logging,
)

logger = logging.getLogger(__name__)

POLL_ITERATIONS = 10
POLL_INTERVAL = 0.5
FINISH_WAIT = 3.0


async def flight(drone, config: FlightConfig) -> bool:
    """
    Poll and print telemetry.

    Args:
        drone: Discovered MAVSDK System.
        config: Timing configuration.

    Returns:
        bool: Always True; missing quantities are not an error.
    """
    rendered = await poll_loop(
        drone,
        iterations=POLL_ITERATIONS,
        interval=POLL_INTERVAL,
        timeout=config.telemetry_timeout,
    )
    logger.debug(f"Printed {rendered} telemetry samples")

    await asyncio.sleep(FINISH_WAIT)
    logger.info("Finished...")
    return True


def main():
    """Main entry point."""
    setup_logging()
    sys.exit(run_program(flight, "Read every telemetry quantity by polling"))


if __name__ == "__main__":
    main()
