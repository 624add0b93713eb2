#!/usr/bin/env python3
"""
sequencer.py - Scripted command sequencing for offboard control

Drives a discovered vehicle through the flow shared by all flight programs:

    IDLE -> ARMED -> (IN_AIR) -> STREAMING -> STREAM_STOPPED -> LANDED/DISARMED
                                         \\-> KILLED

Every command returns a CommandResult instead of raising, so a program can
decide which failures are fatal (see results.require). The sequencer never
reads telemetry to decide that a motion step is complete: each step holds
its setpoint for a fixed wall-clock duration while a SetpointRefresher keeps
re-sending it.

Usage:
    from offboard_examples.common import CommandSequencer, Step, VelocityNed, require

    sequencer = CommandSequencer(drone)
    require(await sequencer.arm())
    require(await sequencer.takeoff())
    await sequencer.fly([Step(VelocityNed(north_m_s=1.0), 5.0, "Go north")])
    require(await sequencer.land_and_disarm())
"""

import asyncio
import logging
from enum import Enum, auto
from typing import Iterable, List, Optional

from mavsdk.action import ActionError
from mavsdk.offboard import OffboardError
from mavsdk.telemetry import LandedState

from .config import DEFAULT_FLIGHT_CONFIG, FlightConfig
from .refresher import SetpointRefresher
from .results import CommandResult, sdk_reason
from .setpoints import Setpoint, SetpointKind, Step
from .telemetry import first_match, first_sample

logger = logging.getLogger(__name__)


class SequencerState(Enum):
    """Position of a run in the command sequence."""
    IDLE = auto()
    ARMED = auto()
    IN_AIR = auto()
    STREAMING = auto()
    STREAM_STOPPED = auto()
    LANDED = auto()
    DISARMED = auto()
    KILLED = auto()


_CAN_ARM = {SequencerState.IDLE, SequencerState.DISARMED}
_CAN_STREAM = {SequencerState.ARMED, SequencerState.IN_AIR, SequencerState.STREAM_STOPPED}
_CAN_SEND = _CAN_STREAM | {SequencerState.STREAMING}
_CAN_LAND = _CAN_SEND


class CommandSequencer:
    """
    Issues an ordered sequence of vehicle commands.

    Attributes:
        state: Current SequencerState.
        config: Timing configuration.
        in_air: Whether takeoff was confirmed and no landing has completed since.
    """

    def __init__(self, drone: "System", config: Optional[FlightConfig] = None):
        """
        Initialize the sequencer.

        Args:
            drone: Discovered MAVSDK System. Not owned by the sequencer.
            config: Timing configuration (default: DEFAULT_FLIGHT_CONFIG).
        """
        self._drone = drone
        self.config = config or DEFAULT_FLIGHT_CONFIG
        self.state = SequencerState.IDLE
        self.in_air = False
        self._primed: Optional[Setpoint] = None
        self._streaming_kind: Optional[SetpointKind] = None
        self._refresher: Optional[SetpointRefresher] = None

    @property
    def streaming_kind(self) -> Optional[SetpointKind]:
        """Setpoint kind of the active offboard session, if any."""
        return self._streaming_kind

    def _rejected(self, command: str, allowed) -> Optional[CommandResult]:
        if self.state in allowed:
            return None
        reason = f"not allowed in state {self.state.name}"
        logger.error(f"{command} rejected: {reason}")
        return CommandResult.failed(command, reason)

    def _failed(self, command: str, error: Exception) -> CommandResult:
        result = CommandResult.failed(command, sdk_reason(error))
        logger.error(str(result))
        return result

    # -------------------------------------------------------------------------
    # Discrete actions
    # -------------------------------------------------------------------------

    async def arm(self) -> CommandResult:
        """Arm the vehicle."""
        rejected = self._rejected("arm", _CAN_ARM)
        if rejected is not None:
            return rejected

        logger.info("Arming...")
        try:
            await self._drone.action.arm()
        except ActionError as e:
            return self._failed("arm", e)

        self.state = SequencerState.ARMED
        logger.info("Armed")
        return CommandResult.ok("arm")

    async def takeoff(self, timeout: Optional[float] = None) -> CommandResult:
        """
        Take off and wait until the landed state reports IN_AIR.

        Args:
            timeout: Seconds to wait for IN_AIR (default: config.takeoff_timeout).
        """
        rejected = self._rejected("takeoff", {SequencerState.ARMED})
        if rejected is not None:
            return rejected

        timeout = self.config.takeoff_timeout if timeout is None else timeout
        logger.info("Taking off...")
        try:
            await self._drone.action.takeoff()
        except ActionError as e:
            return self._failed("takeoff", e)

        try:
            await first_match(
                self._drone.telemetry.landed_state(),
                lambda state: state == LandedState.IN_AIR,
                timeout,
            )
        except asyncio.TimeoutError:
            result = CommandResult.failed("takeoff", f"timed out after {timeout}s")
            logger.error(str(result))
            return result

        self.state = SequencerState.IN_AIR
        self.in_air = True
        logger.info("Taking off has finished")
        return CommandResult.ok("takeoff")

    async def land(self, timeout: Optional[float] = None) -> CommandResult:
        """
        Land and poll the in-air state until the vehicle is on the ground.

        Args:
            timeout: Seconds to wait for touchdown (default: config.land_timeout).
        """
        rejected = self._rejected("land", _CAN_LAND)
        if rejected is not None:
            return rejected

        await self._stop_refresh()
        timeout = self.config.land_timeout if timeout is None else timeout

        logger.info("Landing...")
        try:
            await self._drone.action.land()
        except ActionError as e:
            return self._failed("land", e)

        loop = asyncio.get_running_loop()
        start = loop.time()
        while True:
            try:
                in_air = await first_sample(
                    self._drone.telemetry.in_air(), self.config.telemetry_timeout
                )
            except asyncio.TimeoutError:
                in_air = True
                logger.debug("No in-air telemetry, assuming still airborne")

            if not in_air:
                break
            if loop.time() - start > timeout:
                result = CommandResult.failed("land", f"still in air after {timeout}s")
                logger.error(str(result))
                return result

            logger.info("Vehicle is landing...")
            await asyncio.sleep(self.config.land_poll_interval)

        self.state = SequencerState.LANDED
        self.in_air = False
        self._streaming_kind = None
        logger.info("Landed!")
        return CommandResult.ok("land")

    async def disarm(self) -> CommandResult:
        """Disarm the vehicle."""
        logger.info("Disarming...")
        try:
            await self._drone.action.disarm()
        except ActionError as e:
            return self._failed("disarm", e)

        self.state = SequencerState.DISARMED
        logger.info("Disarmed")
        return CommandResult.ok("disarm")

    async def land_and_disarm(self, timeout: Optional[float] = None) -> CommandResult:
        """
        Land, then disarm unless the autopilot already disarmed on touchdown.
        """
        result = await self.land(timeout)
        if not result:
            return result

        try:
            armed = await first_sample(
                self._drone.telemetry.armed(), self.config.telemetry_timeout
            )
        except asyncio.TimeoutError:
            armed = True

        if not armed:
            self.state = SequencerState.DISARMED
            logger.info("Auto-disarmed")
            return CommandResult.ok("disarm")
        return await self.disarm()

    async def kill(self) -> CommandResult:
        """
        Cut the motors immediately.

        WARNING: A flying vehicle will fall. The offboard session is left
        running; only the local refresh task is stopped.
        """
        await self._stop_refresh()

        if self.in_air:
            logger.warning("Killing motors in flight, the vehicle will fall")
        else:
            logger.warning("Killing motors")
        try:
            await self._drone.action.kill()
        except ActionError as e:
            return self._failed("kill", e)

        self.state = SequencerState.KILLED
        self.in_air = False
        return CommandResult.ok("kill")

    # -------------------------------------------------------------------------
    # Offboard streaming
    # -------------------------------------------------------------------------

    async def send_setpoint(self, setpoint: Setpoint) -> CommandResult:
        """
        Send a setpoint.

        Outside offboard mode this primes the session that start_streaming()
        will open. In offboard mode it replaces the refreshed setpoint, which
        must be of the kind the session was started with.
        """
        command = f"set {setpoint.kind.value.lower()}"
        rejected = self._rejected(command, _CAN_SEND)
        if rejected is not None:
            return rejected

        streaming = self.state == SequencerState.STREAMING
        if streaming and setpoint.kind != self._streaming_kind:
            reason = (
                f"offboard session streams {self._streaming_kind.value}; "
                "stop and restart offboard to switch"
            )
            logger.error(f"{command} rejected: {reason}")
            return CommandResult.failed(command, reason)

        try:
            if streaming:
                await self._refresher.update(setpoint)
            else:
                await setpoint.send(self._drone.offboard)
        except OffboardError as e:
            return self._failed(command, e)

        if not streaming:
            self._primed = setpoint
        return CommandResult.ok(command)

    async def start_streaming(self, kind: Optional[SetpointKind] = None) -> CommandResult:
        """
        Enter offboard mode.

        A setpoint of the intended kind must have been sent first, otherwise
        the request is rejected without reaching the autopilot.

        Args:
            kind: Intended setpoint kind (default: kind of the priming setpoint).
        """
        rejected = self._rejected("offboard start", _CAN_STREAM)
        if rejected is not None:
            return rejected

        if self._primed is None or (kind is not None and self._primed.kind != kind):
            wanted = kind.value if kind is not None else "any"
            result = CommandResult.failed(
                "offboard start", f"no {wanted} setpoint sent before starting"
            )
            logger.error(str(result))
            return result

        try:
            await self._drone.offboard.start()
        except OffboardError as e:
            return self._failed("offboard start", e)

        self._streaming_kind = self._primed.kind
        self._refresher = SetpointRefresher(self._drone.offboard, self.config.refresh_rate_hz)
        self._refresher.latest = self._primed
        self._refresher.start()
        self.state = SequencerState.STREAMING
        return CommandResult.ok("offboard start")

    async def stop_streaming(self) -> CommandResult:
        """Leave offboard mode. The next session must be primed again."""
        rejected = self._rejected("offboard stop", {SequencerState.STREAMING})
        if rejected is not None:
            return rejected

        try:
            await self._drone.offboard.stop()
        except OffboardError as e:
            return self._failed("offboard stop", e)

        await self._stop_refresh()
        self._primed = None
        self._streaming_kind = None
        self.state = SequencerState.STREAM_STOPPED
        return CommandResult.ok("offboard stop")

    async def run_steps(self, steps: Iterable[Step]) -> CommandResult:
        """
        Hold each step's setpoint for its duration.

        Returns:
            CommandResult: Failure of the first rejected setpoint, or success.
        """
        rejected = self._rejected("offboard sequence", {SequencerState.STREAMING})
        if rejected is not None:
            return rejected

        for step in steps:
            if step.label:
                logger.info(f"[{step.setpoint.kind.value}] {step.label}")
            result = await self.send_setpoint(step.setpoint)
            if not result:
                return result
            await asyncio.sleep(step.duration_s)

        return CommandResult.ok("offboard sequence")

    async def fly(
        self,
        steps: List[Step],
        prime: Optional[Setpoint] = None,
        stop: bool = True,
    ) -> CommandResult:
        """
        Run one offboard phase: prime, start, run the steps, optionally stop.

        Args:
            steps: Scripted sequence, all of one setpoint kind.
            prime: Setpoint sent before starting (default: first step's setpoint).
            stop: Leave offboard mode afterwards.

        Returns:
            CommandResult: Outcome of the phase. A failure aborts the phase
            only; the caller decides whether the run continues.
        """
        if prime is None:
            if not steps:
                raise ValueError("fly() needs steps or a priming setpoint")
            prime = steps[0].setpoint

        mode = prime.kind.value
        logger.info(f"Starting Offboard {mode.lower()} control")

        # Send it once before starting offboard, otherwise it will be rejected
        result = await self.send_setpoint(prime)
        if not result:
            return result

        result = await self.start_streaming(prime.kind)
        if not result:
            return result
        logger.info(f"[{mode}] Offboard started")

        result = await self.run_steps(steps)
        if not result:
            return result

        if stop:
            result = await self.stop_streaming()
            if not result:
                return result
            logger.info(f"[{mode}] Offboard stopped")

        return CommandResult.ok(f"offboard {mode.lower()}")

    async def close(self) -> None:
        """Stop background work. Does not command the vehicle."""
        await self._stop_refresh()

    async def _stop_refresh(self) -> None:
        if self._refresher is not None:
            await self._refresher.stop()
            self._refresher = None
