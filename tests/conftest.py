"""
Pytest configuration and shared fixtures for the offboard example tests.

This module provides:
- Async test support via pytest-asyncio
- In-memory doubles of the MAVSDK plugins used by the programs
- Test markers configuration

No simulator is needed: FakeDrone stands in for mavsdk.System and raises
the real MAVSDK error types when a command is configured to fail.
"""

import asyncio
from collections import deque
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from mavsdk.action import ActionError, ActionResult
from mavsdk.mocap import MocapError, MocapResult
from mavsdk.offboard import OffboardError, OffboardResult

from offboard_examples.common import FlightConfig, Peer, PeerSubscription

# Delay between values delivered by fake telemetry streams
STREAM_PERIOD = 0.001


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running"
    )


# =============================================================================
# Fake MAVSDK plugins
# =============================================================================


class FakeAction:
    """
    Fake drone.action.

    Commands listed in `failures` raise ActionError with the given result.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.failures: Dict[str, ActionResult.Result] = {}

    async def _command(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            result = ActionResult(self.failures[name], f"{name} rejected")
            raise ActionError(result, f"{name}()")

    async def arm(self):
        await self._command("arm")

    async def disarm(self):
        await self._command("disarm")

    async def takeoff(self):
        await self._command("takeoff")

    async def land(self):
        await self._command("land")

    async def kill(self):
        await self._command("kill")


class FakeOffboard:
    """
    Fake drone.offboard.

    Like PX4, start() fails with NO_SETPOINT_SET unless a setpoint was sent
    first. Every setter call is recorded as (setter name, MAVSDK value).
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.active = False
        self.fail_start: Optional[OffboardResult.Result] = None
        self.fail_setpoints: Optional[OffboardResult.Result] = None
        self._has_setpoint = False

    def _raise(self, result: OffboardResult.Result, origin: str):
        raise OffboardError(OffboardResult(result, f"{origin} rejected"), origin)

    async def _set(self, name: str, value) -> None:
        self.calls.append((name, value))
        if self.fail_setpoints is not None:
            self._raise(self.fail_setpoints, name)
        self._has_setpoint = True

    async def set_attitude(self, attitude):
        await self._set("set_attitude", attitude)

    async def set_velocity_ned(self, velocity_ned_yaw):
        await self._set("set_velocity_ned", velocity_ned_yaw)

    async def set_velocity_body(self, velocity_body_yawspeed):
        await self._set("set_velocity_body", velocity_body_yawspeed)

    async def set_position_ned(self, position_ned_yaw):
        await self._set("set_position_ned", position_ned_yaw)

    async def start(self):
        self.calls.append(("start", None))
        if self.fail_start is not None:
            self._raise(self.fail_start, "start()")
        if not self._has_setpoint:
            self._raise(OffboardResult.Result.NO_SETPOINT_SET, "start()")
        self.active = True

    async def stop(self):
        self.calls.append(("stop", None))
        self.active = False
        self._has_setpoint = False

    def setpoints(self) -> List[tuple]:
        """Recorded setter calls, without start/stop."""
        return [call for call in self.calls if call[0].startswith("set_")]


class FakeTelemetry:
    """
    Fake drone.telemetry.

    Every attribute is a stream factory. Values configured with set_stream()
    are shared by all streams of that name: each delivered value is consumed,
    except the last one, which repeats. Streams without values never yield.
    """

    def __init__(self):
        self._values: Dict[str, deque] = {}
        self.opened: List[str] = []

    def set_stream(self, name: str, *values) -> None:
        self._values[name] = deque(values)

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return lambda: self._stream(name)

    async def _stream(self, name: str):
        self.opened.append(name)
        values = self._values.get(name)
        if not values:
            await asyncio.Event().wait()
        while True:
            value = values.popleft() if len(values) > 1 else values[0]
            yield value
            await asyncio.sleep(STREAM_PERIOD)


class FakeCore:
    """Fake drone.core delivering connection states after a delay."""

    def __init__(self, connected_after: Optional[float] = 0.0):
        self.connected_after = connected_after

    async def connection_state(self):
        yield SimpleNamespace(is_connected=False)
        if self.connected_after is None:
            await asyncio.Event().wait()
        await asyncio.sleep(self.connected_after)
        yield SimpleNamespace(is_connected=True)
        await asyncio.Event().wait()


class FakeMocap:
    """Fake drone.mocap."""

    def __init__(self):
        self.estimates: List = []
        self.failure: Optional[MocapResult.Result] = None

    async def set_vision_position_estimate(self, vision_position_estimate):
        self.estimates.append(vision_position_estimate)
        if self.failure is not None:
            raise MocapError(
                MocapResult(self.failure, "estimate rejected"),
                "set_vision_position_estimate()",
            )


class FakeDrone:
    """Stand-in for mavsdk.System with fake plugins."""

    def __init__(self, connected_after: Optional[float] = 0.0):
        self.action = FakeAction()
        self.offboard = FakeOffboard()
        self.telemetry = FakeTelemetry()
        self.core = FakeCore(connected_after)
        self.mocap = FakeMocap()
        self.system_address: Optional[str] = None
        self.connect_error: Optional[Exception] = None

    async def connect(self, system_address=None):
        self.system_address = system_address
        if self.connect_error is not None:
            raise self.connect_error


class FakePeerSource:
    """Peer source announcing peers on the event loop after a delay."""

    def __init__(self):
        self.callbacks: List = []
        self.unsubscribed = 0

    def subscribe_on_new_peer(self, callback) -> PeerSubscription:
        self.callbacks.append(callback)

        def remove():
            self.unsubscribed += 1
            self.callbacks.remove(callback)

        return PeerSubscription(remove)

    def announce(self, peer: Peer, delay: float = 0.0) -> None:
        def deliver():
            for callback in list(self.callbacks):
                callback(peer)

        asyncio.get_running_loop().call_later(delay, deliver)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def drone():
    """
    Fixture providing a fake drone that is already flying-capable.

    Returns:
        FakeDrone: Drone whose landed state reaches IN_AIR after takeoff
        and which reports being on the ground and disarmed after landing.
    """
    from mavsdk.telemetry import LandedState

    drone = FakeDrone()
    drone.telemetry.set_stream("landed_state", LandedState.ON_GROUND, LandedState.IN_AIR)
    drone.telemetry.set_stream("in_air", True, False)
    drone.telemetry.set_stream("armed", False)
    return drone


@pytest.fixture
def fast_config():
    """
    Fixture providing a FlightConfig with short timeouts.

    Returns:
        FlightConfig: Timing configuration suitable for unit tests.
    """
    return FlightConfig(
        discovery_timeout=0.5,
        takeoff_timeout=0.5,
        land_timeout=1.0,
        land_poll_interval=0.01,
        refresh_rate_hz=50.0,
        telemetry_timeout=0.05,
    )
