#!/usr/bin/env python3
"""
config.py - Flight Configuration Parameters

Centralized timing parameters shared by the offboard example programs.
Nothing here is read from files or the environment; programs use
DEFAULT_FLIGHT_CONFIG unless a caller passes its own instance.

Usage:
    from offboard_examples.common.config import DEFAULT_FLIGHT_CONFIG
"""

from dataclasses import dataclass


@dataclass
class FlightConfig:
    """
    Timing configuration for connection, discovery and offboard control.

    Attributes:
        discovery_timeout: Seconds to wait for an autopilot to announce itself.
        takeoff_timeout: Seconds to wait for the landed state to report IN_AIR.
        land_timeout: Seconds to wait for the vehicle to report it is on the ground.
        land_poll_interval: Seconds between in-air polls while landing.
        refresh_rate_hz: Rate at which the latest setpoint is re-sent while streaming.
        telemetry_timeout: Seconds to wait for a single telemetry sample.
    """

    # Heartbeats usually arrive at 1 Hz
    discovery_timeout: float = 3.0

    takeoff_timeout: float = 10.0
    land_timeout: float = 60.0
    land_poll_interval: float = 1.0

    # PX4 drops out of offboard below 2 Hz
    refresh_rate_hz: float = 10.0

    telemetry_timeout: float = 1.0


# Default configuration instance
DEFAULT_FLIGHT_CONFIG = FlightConfig()
