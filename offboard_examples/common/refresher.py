"""
refresher.py - Periodic setpoint refresh while in offboard mode.

PX4 leaves offboard mode and falls back to a failsafe when setpoints stop
arriving for more than half a second. The refresher owns the "how often"
side of streaming: it re-sends the latest setpoint at a fixed rate, while
the caller decides only "what" to send and when to change it.

Usage:
    refresher = SetpointRefresher(drone.offboard, rate_hz=10.0)
    await refresher.update(VelocityNed())
    refresher.start()
    ...
    await refresher.update(VelocityNed(north_m_s=1.0))
    ...
    await refresher.stop()
"""

import asyncio
import logging
from typing import Optional

from mavsdk.offboard import OffboardError

from .results import sdk_reason
from .setpoints import Setpoint

logger = logging.getLogger(__name__)

# Minimum rate the refresh task guarantees
MIN_REFRESH_RATE_HZ = 2.0


class SetpointRefresher:
    """
    Re-sends the latest setpoint at a fixed rate.

    Only the latest setpoint is kept: updating with the same value any
    number of times leaves the requested state unchanged.

    Attributes:
        rate_hz: Refresh rate.
        latest: Latest setpoint, or None before the first update.
        send_failures: Number of refresh sends the SDK rejected.
    """

    def __init__(self, offboard, rate_hz: float = 10.0):
        """
        Initialize the refresher.

        Args:
            offboard: MAVSDK offboard plugin (drone.offboard).
            rate_hz: Refresh rate, at least MIN_REFRESH_RATE_HZ.

        Raises:
            ValueError: If rate_hz is below MIN_REFRESH_RATE_HZ.
        """
        if rate_hz < MIN_REFRESH_RATE_HZ:
            raise ValueError(
                f"Refresh rate {rate_hz} Hz is below the {MIN_REFRESH_RATE_HZ} Hz minimum"
            )
        self._offboard = offboard
        self.rate_hz = rate_hz
        self.latest: Optional[Setpoint] = None
        self.send_failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def interval(self) -> float:
        return 1.0 / self.rate_hz

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def update(self, setpoint: Setpoint) -> None:
        """
        Send a setpoint immediately and make it the refreshed value.

        A rejected setpoint leaves the previous value in place.

        Raises:
            OffboardError: If the SDK rejects the setpoint.
        """
        await setpoint.send(self._offboard)
        self.latest = setpoint

    def start(self) -> None:
        """Start the background refresh task."""
        if self.is_running:
            logger.warning("SetpointRefresher already started")
            return
        self._task = asyncio.create_task(self._refresh())
        logger.debug(f"Refreshing setpoints at {self.rate_hz} Hz")

    async def stop(self) -> None:
        """Stop the background refresh task."""
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.debug("Setpoint refresh stopped")

    async def _refresh(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.latest is None:
                continue
            try:
                await self.latest.send(self._offboard)
            except OffboardError as e:
                self.send_failures += 1
                logger.warning(f"Setpoint refresh failed: {sdk_reason(e)}")
