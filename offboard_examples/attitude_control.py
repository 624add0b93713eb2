#!/usr/bin/env python3
"""
attitude_control.py - Offboard Attitude Control Example

Demonstrates offboard control using attitude setpoints:
1. Connect to the drone and wait for the autopilot
2. Arm (no takeoff, the thrust values stay below hover)
3. Enter offboard mode with a low-thrust attitude
4. Roll left and right
5. Kill the motors

WARNING: The sequence ends with a motor kill and leaves offboard mode
running. Only fly it in the simulator or with the vehicle held down.

Usage:
    python3 -m offboard_examples.attitude_control <connection_url>

Example:
    python3 -m offboard_examples.attitude_control udp://:14540
"""

import asyncio
import logging
import sys

from offboard_examples.common import (
    Attitude,
    CommandSequencer,
    FlightConfig,
    Step,
    log_banner,
    require,
    run_program,
    setup_logging,
)

logger = logging.getLogger(__name__)

# Thrust sent before entering offboard mode
PRIME_ATTITUDE = Attitude(thrust=0.1)

ATTITUDE_SEQUENCE = [
    Step(Attitude(thrust=0.15), 3.0, "Stay horizontal"),
    Step(Attitude(roll_deg=30.0, thrust=0.15), 1.0, "Roll 30 degrees to the left"),
    Step(Attitude(thrust=0.15), 1.0, "Roll to hover position"),
    Step(Attitude(roll_deg=-30.0, thrust=0.15), 1.0, "Roll 30 degrees to the right"),
    Step(Attitude(thrust=0.15), 1.0, "Stay horizontal"),
    Step(Attitude(thrust=0.2), 1.0, "Thrust 0.2"),
    Step(Attitude(thrust=0.0), 2.0, "Set thrust to zero"),
]

# Time to let the vehicle settle after the kill
KILL_SETTLE_TIME = 2.0


async def flight(drone, config: FlightConfig) -> bool:
    """
    Arm, fly the attitude sequence and kill the motors.

    Args:
        drone: Discovered MAVSDK System.
        config: Timing configuration.

    Returns:
        bool: True if every command succeeded.
    """
    log_banner("Offboard Attitude Control Demo")

    sequencer = CommandSequencer(drone, config)
    try:
        require(await sequencer.arm())

        # The stream is left running; the kill ends the run
        phase = await sequencer.fly(ATTITUDE_SEQUENCE, prime=PRIME_ATTITUDE, stop=False)
        if not phase:
            logger.warning("Attitude sequence incomplete, proceeding to kill")

        require(await sequencer.kill())
        await asyncio.sleep(KILL_SETTLE_TIME)
    finally:
        await sequencer.close()

    if not phase:
        return False

    log_banner("Offboard attitude demo complete!")
    return True


def main():
    """Main entry point."""
    setup_logging()
    sys.exit(run_program(flight, "Offboard attitude control example using MAVSDK"))


if __name__ == "__main__":
    main()
