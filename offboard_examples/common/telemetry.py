#!/usr/bin/env python3
"""
telemetry.py - Telemetry polling and subscriptions for MAVSDK

Two ways of observing the vehicle:

Polling:
    Read the current value of each quantity on demand. MAVSDK-Python only
    exposes streams, so a poll takes the first sample of a fresh stream.

Push subscription:
    TelemetryObserver runs one background task per subscribed stream and
    invokes the registered callbacks for every sample.

Samples are displayed and superseded, never queued.

Usage:
    from offboard_examples.common.telemetry import TelemetryObserver, format_health

    observer = TelemetryObserver(drone)
    observer.subscribe("health", lambda sample: print(format_health(sample.value)))
    await observer.start()
    await asyncio.sleep(3)
    await observer.stop()
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TelemetrySample:
    """
    Snapshot of one observable quantity.

    Attributes:
        kind: Telemetry stream name, e.g. "position" or "health".
        value: The MAVSDK value object as delivered.
        timestamp: Local time the sample was received.
    """
    kind: str
    value: Any
    timestamp: float = 0.0


# (label, telemetry stream) pairs read by the polling loop
POLLED_QUANTITIES = [
    ("Position", "position"),
    ("Home Position", "home"),
    ("Attitude", "attitude_quaternion"),
    ("Attitude", "attitude_euler"),
    ("Angular velocity", "attitude_angular_velocity_body"),
    ("Fixed wing metrics", "fixedwing_metrics"),
    ("Ground Truth", "ground_truth"),
    ("Velocity", "velocity_ned"),
    ("GPS Info", "gps_info"),
    ("Battery", "battery"),
    ("Actuators", "actuator_control_target"),
    ("Flight mode", "flight_mode"),
    ("Landed state", "landed_state"),
    ("In air", "in_air"),
]


async def first_sample(stream: AsyncIterator, timeout: Optional[float] = None) -> Any:
    """
    Read one value from a telemetry stream and close it.

    Args:
        stream: Async generator returned by a drone.telemetry method.
        timeout: Maximum wait in seconds (None waits forever).

    Returns:
        The first value delivered by the stream.

    Raises:
        asyncio.TimeoutError: If nothing arrives within timeout.
        StopAsyncIteration: If the stream ends without a value.
    """
    try:
        return await asyncio.wait_for(stream.__anext__(), timeout)
    finally:
        await stream.aclose()


async def first_match(
    stream: AsyncIterator,
    predicate: Callable[[Any], bool],
    timeout: float,
) -> Any:
    """
    Wait until a telemetry stream delivers a value matching predicate.

    A consumer task reads the stream and writes the first match into a
    single-assignment future, which the caller awaits with a timeout.

    Args:
        stream: Async generator returned by a drone.telemetry method.
        predicate: Test applied to every value.
        timeout: Maximum wait in seconds.

    Returns:
        The first matching value.

    Raises:
        asyncio.TimeoutError: If no value matched within timeout.
    """
    loop = asyncio.get_running_loop()
    matched: asyncio.Future = loop.create_future()

    async def consume():
        try:
            async for value in stream:
                if predicate(value):
                    if not matched.done():
                        matched.set_result(value)
                    return
        except Exception as e:
            if not matched.done():
                matched.set_exception(e)
        finally:
            await stream.aclose()

    consumer = asyncio.create_task(consume())
    try:
        return await asyncio.wait_for(matched, timeout)
    finally:
        consumer.cancel()
        await asyncio.gather(consumer, return_exceptions=True)


async def poll_sample(
    drone: "System",
    stream_name: str,
    timeout: float = 1.0,
) -> Optional[TelemetrySample]:
    """
    Poll the current value of one telemetry quantity.

    Args:
        drone: Connected MAVSDK System.
        stream_name: Name of the drone.telemetry stream.
        timeout: Maximum wait in seconds.

    Returns:
        TelemetrySample: The sample, or None if unavailable.
    """
    try:
        value = await first_sample(getattr(drone.telemetry, stream_name)(), timeout)
    except asyncio.TimeoutError:
        logger.debug(f"No {stream_name} telemetry within {timeout}s")
        return None
    except Exception as e:
        logger.warning(f"{stream_name} telemetry error: {e}")
        return None
    return TelemetrySample(kind=stream_name, value=value, timestamp=time.time())


async def poll_all(drone: "System", timeout: float = 1.0) -> List[TelemetrySample]:
    """
    Poll every quantity in POLLED_QUANTITIES once.

    Returns:
        List[TelemetrySample]: Available samples, in POLLED_QUANTITIES order.
    """
    samples = []
    for _, stream_name in POLLED_QUANTITIES:
        sample = await poll_sample(drone, stream_name, timeout)
        if sample is not None:
            samples.append(sample)
    return samples


def format_sample(sample: TelemetrySample) -> str:
    """Render a polled sample as "Label: value"."""
    labels = {stream: label for label, stream in POLLED_QUANTITIES}
    label = labels.get(sample.kind, sample.kind)
    return f"{label}: {sample.value}"


async def poll_loop(
    drone: "System",
    iterations: int = 10,
    interval: float = 0.5,
    timeout: float = 1.0,
    render: Callable[[str], None] = print,
) -> int:
    """
    Poll and render every quantity in a fixed loop.

    Args:
        drone: Connected MAVSDK System.
        iterations: Number of polling rounds.
        interval: Sleep between rounds in seconds.
        timeout: Per-quantity read timeout.
        render: Called with each rendered line.

    Returns:
        int: Number of samples rendered.
    """
    rendered = 0
    for _ in range(iterations):
        for sample in await poll_all(drone, timeout):
            render(format_sample(sample))
            rendered += 1
        await asyncio.sleep(interval)
    return rendered


def format_health(health) -> str:
    """Render a Health value as an ok/not ok table."""
    def ok(flag: bool) -> str:
        return "ok" if flag else "not ok"

    return "\n".join([
        "Got health:",
        f"Gyro calibration:  {ok(health.is_gyrometer_calibration_ok)}",
        f"Accel calibration: {ok(health.is_accelerometer_calibration_ok)}",
        f"Mag calibration:   {ok(health.is_magnetometer_calibration_ok)}",
        f"Local position:    {ok(health.is_local_position_ok)}",
        f"Global position:   {ok(health.is_global_position_ok)}",
        f"Home position:     {ok(health.is_home_position_ok)}",
    ])


def format_rc_status(rc_status) -> str:
    """Render an RcStatus value."""
    def yes(flag: bool) -> str:
        return "yes" if flag else "no"

    return "\n".join([
        f"RC available: {yes(rc_status.is_available)}",
        f"RC available once: {yes(rc_status.was_available_once)}",
        f"RC RSSI: {rc_status.signal_strength_percent}",
    ])


class TelemetryObserver:
    """
    Push-style telemetry subscriptions without blocking command execution.

    Each subscribed stream is read by its own background task, which
    yields to the event loop after every sample so commands keep running.

    Example:
        observer = TelemetryObserver(drone)
        observer.subscribe("rc_status", on_rc_status)
        await observer.start()
        ...
        await observer.stop()
    """

    def __init__(self, drone: "System"):
        self._drone = drone
        self._callbacks: Dict[str, List[Callable[[TelemetrySample], None]]] = {}
        self._latest: Dict[str, TelemetrySample] = {}
        self._tasks: List[asyncio.Task] = []
        self._started = False

    def subscribe(self, stream_name: str, callback: Callable[[TelemetrySample], None]) -> None:
        """
        Register a callback for a telemetry stream.

        Subscribing after start() takes effect on the next start().

        Args:
            stream_name: Name of the drone.telemetry stream, e.g. "health".
            callback: Function called with each TelemetrySample.
        """
        self._callbacks.setdefault(stream_name, []).append(callback)

    def unsubscribe(self, stream_name: str, callback: Callable[[TelemetrySample], None]) -> None:
        """Remove a previously registered callback."""
        callbacks = self._callbacks.get(stream_name, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def latest(self, stream_name: str) -> Optional[TelemetrySample]:
        """Latest sample received for a stream, if any."""
        return self._latest.get(stream_name)

    @property
    def is_running(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Start one background task per subscribed stream."""
        if self._started:
            logger.warning("TelemetryObserver already started")
            return

        self._tasks = [
            asyncio.create_task(self._read_stream(stream_name))
            for stream_name in self._callbacks
        ]
        self._started = True
        logger.debug(f"TelemetryObserver started: {', '.join(self._callbacks)}")

    async def stop(self) -> None:
        """Stop the background tasks."""
        if not self._started:
            return

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._started = False
        logger.debug("TelemetryObserver stopped")

    def _notify(self, sample: TelemetrySample) -> None:
        self._latest[sample.kind] = sample
        for callback in list(self._callbacks.get(sample.kind, [])):
            try:
                callback(sample)
            except Exception as e:
                logger.warning(f"Telemetry callback error: {e}")

    async def _read_stream(self, stream_name: str) -> None:
        try:
            async for value in getattr(self._drone.telemetry, stream_name)():
                self._notify(TelemetrySample(kind=stream_name, value=value, timestamp=time.time()))
                # Yield so commands are not starved
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"{stream_name} telemetry error: {e}")
