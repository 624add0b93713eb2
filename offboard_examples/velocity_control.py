#!/usr/bin/env python3
"""
velocity_control.py - Offboard Velocity Control Example

Demonstrates offboard control using velocity setpoints in two frames:
1. Connect to the drone and wait for the autopilot
2. Arm and takeoff
3. NED velocity phase: turn east, sweep north and back south, climb, descend
4. Body velocity phase: spin while climbing, fly circles forward and sideways
5. Land

Each phase enters and leaves offboard mode on its own. A phase that fails
is abandoned and the next one still runs, the vehicle still lands, but the
run exits with 1.

Usage:
    python3 -m offboard_examples.velocity_control <connection_url>

Example:
    python3 -m offboard_examples.velocity_control udp://:14540
    python3 -m offboard_examples.velocity_control tcp://px4-sitl:5760
"""

import logging
import math
import sys
from typing import List

from offboard_examples.common import (
    CommandSequencer,
    FlightConfig,
    SequencerState,
    Step,
    VelocityBody,
    VelocityNed,
    log_banner,
    require,
    run_program,
    setup_logging,
)

logger = logging.getLogger(__name__)

SWEEP_SPEED = 5.0
SWEEP_STEP_SIZE = 0.01
SWEEP_STEP_DURATION = 0.01


def sine_sweep(
    speed: float = SWEEP_SPEED,
    step_size: float = SWEEP_STEP_SIZE,
    step_duration: float = SWEEP_STEP_DURATION,
    yaw_deg: float = 90.0,
) -> List[Step]:
    """
    Build a north/south sweep following two sine cycles.

    Args:
        speed: Peak north velocity in m/s.
        step_size: Phase increment per step in radians.
        step_duration: Hold time per step in seconds.
        yaw_deg: Heading held during the sweep.

    Returns:
        List[Step]: One step per phase increment.
    """
    one_cycle = 2.0 * math.pi
    steps = 2 * int(one_cycle / step_size)
    sweep = [
        Step(VelocityNed(north_m_s=speed * math.sin(i * step_size), yaw_deg=yaw_deg), step_duration)
        for i in range(steps)
    ]
    return [Step(sweep[0].setpoint, step_duration, "Go North and back South")] + sweep[1:]


NED_SEQUENCE = (
    [Step(VelocityNed(yaw_deg=90.0), 1.0, "Turn to face East")]
    + sine_sweep()
    + [
        Step(VelocityNed(yaw_deg=270.0), 2.0, "Turn to face West"),
        Step(VelocityNed(down_m_s=-2.0, yaw_deg=180.0), 4.0, "Go up 2 m/s, turn to face South"),
        Step(VelocityNed(down_m_s=1.0), 4.0, "Go down 1 m/s, turn to face North"),
    ]
)

BODY_SEQUENCE = [
    Step(VelocityBody(down_m_s=-1.0, yawspeed_deg_s=60.0), 5.0, "Turn clock-wise and climb"),
    Step(VelocityBody(down_m_s=-1.0, yawspeed_deg_s=-60.0), 5.0, "Turn back anti-clockwise"),
    Step(VelocityBody(), 2.0, "Wait for a bit"),
    Step(VelocityBody(forward_m_s=5.0, yawspeed_deg_s=30.0), 15.0, "Fly a circle"),
    Step(VelocityBody(), 5.0, "Wait for a bit"),
    Step(VelocityBody(right_m_s=-5.0, yawspeed_deg_s=30.0), 15.0, "Fly a circle sideways"),
    Step(VelocityBody(), 8.0, "Wait for a bit"),
]


async def flight(drone, config: FlightConfig) -> bool:
    """
    Take off, run the NED and body velocity phases and land.

    Args:
        drone: Discovered MAVSDK System.
        config: Timing configuration.

    Returns:
        bool: True if both phases completed and the vehicle landed.
    """
    log_banner(
        "Offboard Velocity Control Demo",
        f"NED steps: {len(NED_SEQUENCE)}",
        f"Body steps: {len(BODY_SEQUENCE)}",
    )

    sequencer = CommandSequencer(drone, config)
    phases_ok = True
    try:
        require(await sequencer.arm())
        require(await sequencer.takeoff())

        for name, steps, prime in (
            ("NED", NED_SEQUENCE, VelocityNed()),
            ("Body", BODY_SEQUENCE, VelocityBody()),
        ):
            phase = await sequencer.fly(steps, prime=prime)
            if not phase:
                logger.warning(f"{name} velocity phase incomplete")
                phases_ok = False
                if sequencer.state == SequencerState.STREAMING:
                    await sequencer.stop_streaming()

        require(await sequencer.land_and_disarm())
    finally:
        await sequencer.close()

    if not phases_ok:
        return False

    log_banner("Offboard velocity demo complete!")
    return True


def main():
    """Main entry point."""
    setup_logging()
    sys.exit(run_program(flight, "Offboard velocity control example using MAVSDK"))


if __name__ == "__main__":
    main()
