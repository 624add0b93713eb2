#!/usr/bin/env python3
"""
test_refresher.py - Tests for periodic setpoint refresh

Run with:
    pytest tests/test_refresher.py -v
"""

import asyncio

import pytest

from mavsdk.offboard import OffboardError, OffboardResult

from offboard_examples.common.refresher import MIN_REFRESH_RATE_HZ, SetpointRefresher
from offboard_examples.common.setpoints import VelocityNed

from conftest import FakeOffboard


class TestSetpointRefresher:
    """Tests for SetpointRefresher."""

    def test_rate_below_minimum_rejected(self):
        """Test rates below the offboard minimum are refused."""
        with pytest.raises(ValueError):
            SetpointRefresher(FakeOffboard(), rate_hz=MIN_REFRESH_RATE_HZ / 2)

    def test_interval(self):
        """Test the refresh interval matches the rate."""
        assert SetpointRefresher(FakeOffboard(), rate_hz=10.0).interval == pytest.approx(0.1)

    @pytest.mark.asyncio
    async def test_update_sends_immediately(self):
        """Test update() sends without waiting for the next refresh."""
        offboard = FakeOffboard()
        refresher = SetpointRefresher(offboard)

        await refresher.update(VelocityNed(north_m_s=1.0))

        assert len(offboard.setpoints()) == 1
        assert refresher.latest == VelocityNed(north_m_s=1.0)

    @pytest.mark.asyncio
    async def test_resends_latest_periodically(self):
        """Test the latest setpoint is re-sent at the configured rate."""
        offboard = FakeOffboard()
        refresher = SetpointRefresher(offboard, rate_hz=50.0)
        await refresher.update(VelocityNed(east_m_s=2.0))

        refresher.start()
        assert refresher.is_running
        await asyncio.sleep(0.2)
        await refresher.stop()

        sent = [value for _, value in offboard.setpoints()]
        assert len(sent) >= 4
        assert all(value.east_m_s == 2.0 for value in sent)
        assert refresher.is_running is False

    @pytest.mark.asyncio
    async def test_same_value_does_not_accumulate(self):
        """Test repeating an update keeps a single latest setpoint."""
        offboard = FakeOffboard()
        refresher = SetpointRefresher(offboard, rate_hz=50.0)

        for _ in range(5):
            await refresher.update(VelocityNed(down_m_s=1.0))
        assert refresher.latest == VelocityNed(down_m_s=1.0)

        refresher.start()
        await asyncio.sleep(0.1)
        await refresher.update(VelocityNed(north_m_s=3.0))
        await asyncio.sleep(0.1)
        await refresher.stop()

        # After the replacement only the new value is refreshed
        sent = [value for _, value in offboard.setpoints()]
        first_new = next(i for i, value in enumerate(sent) if value.north_m_s == 3.0)
        last = sent[first_new:]
        assert len(last) >= 2
        assert all(value.north_m_s == 3.0 for value in last)

    @pytest.mark.asyncio
    async def test_nothing_sent_without_setpoint(self):
        """Test the refresh task stays quiet until a setpoint exists."""
        offboard = FakeOffboard()
        refresher = SetpointRefresher(offboard, rate_hz=50.0)

        refresher.start()
        await asyncio.sleep(0.1)
        await refresher.stop()

        assert offboard.setpoints() == []

    @pytest.mark.asyncio
    async def test_send_failures_counted(self):
        """Test rejected refresh sends are counted and do not stop the task."""
        offboard = FakeOffboard()
        refresher = SetpointRefresher(offboard, rate_hz=50.0)
        refresher.latest = VelocityNed()
        offboard.fail_setpoints = OffboardResult.Result.CONNECTION_ERROR

        refresher.start()
        await asyncio.sleep(0.15)
        assert refresher.is_running
        await refresher.stop()

        assert refresher.send_failures >= 2

    @pytest.mark.asyncio
    async def test_rejected_update_keeps_previous(self):
        """Test a rejected setpoint is not the one refreshed afterwards."""
        offboard = FakeOffboard()
        refresher = SetpointRefresher(offboard)
        await refresher.update(VelocityNed())
        offboard.fail_setpoints = OffboardResult.Result.COMMAND_DENIED

        with pytest.raises(OffboardError):
            await refresher.update(VelocityNed(north_m_s=5.0))

        assert refresher.latest == VelocityNed()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        """Test stop() is a no-op when never started."""
        refresher = SetpointRefresher(FakeOffboard())
        await refresher.stop()
        assert refresher.is_running is False
