#!/usr/bin/env python3
"""
telemetry_health.py - Health and RC Status Subscription Example

Subscribes to the health and RC status streams and prints every update
for a few seconds. Commands could keep running meanwhile: each stream is
read by its own background task.

Usage:
    python3 -m offboard_examples.telemetry_health <connection_url>

Example:
    python3 -m offboard_examples.telemetry_health serial:///dev/ttyAMA0:921600
"""

import asyncio
import logging
import sys

from offboard_examples.common import (
    FlightConfig,
    TelemetryObserver,
    TelemetrySample,
    format_health,
    format_rc_status,
    run_program,
    setup_logging,
)

logger = logging.getLogger(__name__)

# Let the link settle before subscribing
STARTUP_WAIT = 1.0
OBSERVE_DURATION = 3.5


def print_health(sample: TelemetrySample) -> None:
    print(format_health(sample.value))


def print_rc_status(sample: TelemetrySample) -> None:
    print(format_rc_status(sample.value))


async def flight(drone, config: FlightConfig) -> bool:
    """
    Print health and RC status updates for OBSERVE_DURATION seconds.

    Returns:
        bool: Always True; a silent vehicle is reported, not fatal.
    """
    await asyncio.sleep(STARTUP_WAIT)

    observer = TelemetryObserver(drone)
    observer.subscribe("health", print_health)
    observer.subscribe("rc_status", print_rc_status)

    await observer.start()
    try:
        await asyncio.sleep(OBSERVE_DURATION)
    finally:
        await observer.stop()

    if observer.latest("health") is None and observer.latest("rc_status") is None:
        logger.warning("No health or RC status received")

    logger.info("Finished...")
    return True


def main():
    """Main entry point."""
    setup_logging()
    sys.exit(run_program(flight, "Print health and RC status updates"))


if __name__ == "__main__":
    main()
