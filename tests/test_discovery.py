#!/usr/bin/env python3
"""
test_discovery.py - Tests for autopilot discovery

Tests for:
- Discovery resolving on the first autopilot announcement
- Discovery timeout
- Peers without an autopilot being ignored
- Announcements delivered from a foreign thread
- MavsdkPeerSource announcing on connection

Run with:
    pytest tests/test_discovery.py -v
"""

import asyncio
import threading
import time

import pytest

from offboard_examples.common.discovery import (
    MavsdkPeerSource,
    Peer,
    PeerSubscription,
    discover,
)

from conftest import FakeDrone, FakePeerSource


class ThreadedPeerSource:
    """Peer source announcing peers from its own thread, like the SDK's callbacks."""

    def __init__(self, *peers: Peer, delay: float = 0.05):
        self.peers = peers
        self.delay = delay
        self.callbacks = []
        self.callback_threads = []
        self.thread = None
        self._lock = threading.Lock()

    def subscribe_on_new_peer(self, callback) -> PeerSubscription:
        with self._lock:
            self.callbacks.append(callback)

        def remove():
            with self._lock:
                self.callbacks.remove(callback)

        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()
        return PeerSubscription(remove)

    def _run(self):
        time.sleep(self.delay)
        for peer in self.peers:
            with self._lock:
                callbacks = list(self.callbacks)
            for callback in callbacks:
                self.callback_threads.append(threading.get_ident())
                callback(peer)


class TestPeerSubscription:
    """Tests for PeerSubscription."""

    def test_unsubscribe_is_idempotent(self):
        """Test the unsubscribe callback runs only once."""
        calls = []
        subscription = PeerSubscription(lambda: calls.append(1))

        assert subscription.active is True
        subscription.unsubscribe()
        subscription.unsubscribe()

        assert subscription.active is False
        assert calls == [1]


class TestDiscover:
    """Tests for discover()."""

    @pytest.mark.asyncio
    async def test_autopilot_announced_after_half_a_second(self):
        """Test discovery returns the peer announced at 0.5 s."""
        source = FakePeerSource()
        autopilot = Peer("udp://:14540", is_connected=True, has_autopilot=True)
        source.announce(autopilot, delay=0.5)

        loop = asyncio.get_running_loop()
        start = loop.time()
        peer = await discover(source, timeout=3.0)
        elapsed = loop.time() - start

        assert peer == autopilot
        assert 0.4 < elapsed < 1.5
        assert source.callbacks == []

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_no_peer_within_three_seconds(self):
        """Test discovery reports not found after the default timeout."""
        source = FakePeerSource()

        loop = asyncio.get_running_loop()
        start = loop.time()
        peer = await discover(source)

        assert peer is None
        assert loop.time() - start >= 2.9
        assert source.callbacks == []

    @pytest.mark.asyncio
    async def test_peer_without_autopilot_is_ignored(self):
        """Test a peer without autopilot does not resolve discovery."""
        source = FakePeerSource()
        camera = Peer("camera", has_autopilot=False)
        autopilot = Peer("autopilot", has_autopilot=True)
        source.announce(camera, delay=0.05)
        source.announce(autopilot, delay=0.1)

        peer = await discover(source, timeout=1.0)

        assert peer == autopilot

    @pytest.mark.asyncio
    async def test_only_non_autopilot_peers_times_out(self):
        """Test discovery times out when no announced peer has an autopilot."""
        source = FakePeerSource()
        source.announce(Peer("gimbal", has_autopilot=False), delay=0.05)

        assert await discover(source, timeout=0.2) is None

    @pytest.mark.asyncio
    async def test_second_autopilot_ignored(self):
        """Test the first autopilot wins and the listener is dropped."""
        source = FakePeerSource()
        first = Peer("first", has_autopilot=True)
        second = Peer("second", has_autopilot=True)
        source.announce(first, delay=0.05)
        source.announce(second, delay=0.05)

        peer = await discover(source, timeout=1.0)

        assert peer == first
        assert source.unsubscribed == 1

    @pytest.mark.asyncio
    async def test_announcement_from_another_thread(self):
        """Test peers announced off the event loop thread resolve discovery."""
        camera = Peer("camera", has_autopilot=False)
        autopilot = Peer("autopilot", has_autopilot=True)
        source = ThreadedPeerSource(camera, autopilot)

        peer = await discover(source, timeout=1.0)
        source.thread.join(timeout=1.0)

        assert peer == autopilot
        assert source.callbacks == []
        assert len(source.callback_threads) == 2
        assert threading.get_ident() not in source.callback_threads


class TestMavsdkPeerSource:
    """Tests for MavsdkPeerSource."""

    @pytest.mark.asyncio
    async def test_announces_on_connection(self):
        """Test a connected MAVSDK system is announced as an autopilot."""
        drone = FakeDrone(connected_after=0.05)
        source = MavsdkPeerSource(drone, identity="udp://:14540")

        peer = await discover(source, timeout=1.0)

        assert peer == Peer("udp://:14540", is_connected=True, has_autopilot=True)

    @pytest.mark.asyncio
    async def test_never_connected(self):
        """Test discovery times out when the system never connects."""
        drone = FakeDrone(connected_after=None)
        source = MavsdkPeerSource(drone)

        assert await discover(source, timeout=0.1) is None
