#!/usr/bin/env python3
"""
vision_estimate.py - Vision Position Estimate Example

Feeds a fixed external vision pose to the autopilot through the MAVSDK
mocap plugin, 100 times at about 33 Hz. The covariance is left unknown
(NaN in the first element), as MAVLink expects when none is available.

Usage:
    python3 -m offboard_examples.vision_estimate <connection_url>

Example:
    python3 -m offboard_examples.vision_estimate udp://:14540
"""

import asyncio
import logging
import math
import sys

from mavsdk.mocap import (
    AngleBody,
    Covariance,
    MocapError,
    PositionBody,
    VisionPositionEstimate,
)

from offboard_examples.common import (
    FlightConfig,
    log_banner,
    run_program,
    sdk_reason,
    setup_logging,
)

logger = logging.getLogger(__name__)

SEND_COUNT = 100
SEND_INTERVAL = 0.03

# Let the link settle before and after streaming
STARTUP_WAIT = 1.0
FINISH_WAIT = 0.5


def build_estimate() -> VisionPositionEstimate:
    """Build the fixed pose sent by this example."""
    return VisionPositionEstimate(
        time_usec=0,
        position_body=PositionBody(x_m=1.2, y_m=3.4, z_m=5.6),
        angle_body=AngleBody(roll_rad=0.0, pitch_rad=0.0, yaw_rad=1.0),
        pose_covariance=Covariance(covariance_matrix=[math.nan]),
        reset_counter=0,
    )


async def send_estimates(mocap, estimate, count: int = SEND_COUNT, interval: float = SEND_INTERVAL) -> int:
    """
    Send the same vision estimate repeatedly.

    Args:
        mocap: MAVSDK mocap plugin (drone.mocap).
        estimate: VisionPositionEstimate to send.
        count: Number of sends.
        interval: Sleep between sends in seconds.

    Returns:
        int: Number of sends the SDK accepted.
    """
    accepted = 0
    for i in range(count):
        try:
            await mocap.set_vision_position_estimate(estimate)
            accepted += 1
            logger.debug(f"Position sent ({i + 1}/{count})")
        except MocapError as e:
            logger.warning(f"Position send failed: {sdk_reason(e)}")
        await asyncio.sleep(interval)
    return accepted


async def flight(drone, config: FlightConfig) -> bool:
    """
    Stream the vision estimate.

    Returns:
        bool: Always True; rejected sends are logged.
    """
    log_banner("Vision Position Estimate Demo", f"Sends: {SEND_COUNT}", f"Interval: {SEND_INTERVAL}s")
    await asyncio.sleep(STARTUP_WAIT)

    accepted = await send_estimates(drone.mocap, build_estimate(), SEND_COUNT, SEND_INTERVAL)
    logger.info(f"Vision estimates accepted: {accepted}/{SEND_COUNT}")

    await asyncio.sleep(FINISH_WAIT)
    logger.info("Finished...")
    return True


def main():
    """Main entry point."""
    setup_logging()
    sys.exit(run_program(flight, "Send vision position estimates through the mocap plugin"))


if __name__ == "__main__":
    main()
