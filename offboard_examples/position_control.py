#!/usr/bin/env python3
"""
position_control.py - Offboard Position Control Example

Demonstrates offboard control using NED position setpoints:
1. Connect to the drone and wait for the autopilot
2. Arm and takeoff
3. Enter offboard mode
4. Fly a 1 m box at 2 m altitude, relative to the takeoff point
5. Exit offboard mode and land

Usage:
    python3 -m offboard_examples.position_control <connection_url>

Example:
    python3 -m offboard_examples.position_control udp://:14540
    python3 -m offboard_examples.position_control serial:///dev/ttyAMA0:921600
"""

import asyncio
import logging
import sys

from offboard_examples.common import (
    CommandSequencer,
    FlightConfig,
    PositionNed,
    Step,
    log_banner,
    require,
    run_program,
    setup_logging,
)

logger = logging.getLogger(__name__)

ALTITUDE_DOWN_M = -2.0
LEG_DURATION = 5.0

# Time to stabilize after takeoff before entering offboard mode
SETTLE_TIME = 8.0

POSITION_SEQUENCE = [
    Step(PositionNed(0.0, 0.0, ALTITUDE_DOWN_M), LEG_DURATION, "Go to start position"),
    Step(PositionNed(1.0, 0.0, ALTITUDE_DOWN_M), LEG_DURATION, "Go 1 m north"),
    Step(PositionNed(1.0, 1.0, ALTITUDE_DOWN_M), LEG_DURATION, "Go 1 m east"),
    Step(PositionNed(0.0, 1.0, ALTITUDE_DOWN_M), LEG_DURATION, "Go 1 m south"),
    Step(PositionNed(0.0, 0.0, ALTITUDE_DOWN_M), LEG_DURATION, "Return to start position"),
]


async def flight(drone, config: FlightConfig) -> bool:
    """
    Take off, fly the position box and land.

    Args:
        drone: Discovered MAVSDK System.
        config: Timing configuration.

    Returns:
        bool: True if the box was flown and the vehicle landed.
    """
    log_banner(
        "Offboard Position Control Demo",
        f"Altitude: {-ALTITUDE_DOWN_M}m",
        f"Leg duration: {LEG_DURATION}s",
    )

    sequencer = CommandSequencer(drone, config)
    try:
        require(await sequencer.arm())
        require(await sequencer.takeoff())

        logger.info("Stabilizing before offboard mode...")
        await asyncio.sleep(SETTLE_TIME)

        phase = await sequencer.fly(POSITION_SEQUENCE, prime=PositionNed())
        if not phase:
            logger.warning("Pattern incomplete, proceeding to land")

        require(await sequencer.land_and_disarm())
    finally:
        await sequencer.close()

    if not phase:
        return False

    log_banner("Offboard position demo complete!")
    return True


def main():
    """Main entry point."""
    setup_logging()
    sys.exit(run_program(flight, "Offboard position control example using MAVSDK"))


if __name__ == "__main__":
    main()
