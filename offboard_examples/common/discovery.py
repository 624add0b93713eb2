#!/usr/bin/env python3
"""
discovery.py - Autopilot discovery

Waits for a remote system with an autopilot to announce itself. The
listener registered with the peer source runs whenever an announcement is
delivered; the first peer with an autopilot resolves a single-assignment
future and the listener drops its own subscription.

Usage:
    from offboard_examples.common.discovery import MavsdkPeerSource, discover

    peer = await discover(MavsdkPeerSource(drone), timeout=3.0)
    if peer is None:
        ...  # no autopilot found
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Peer:
    """
    A discovered remote system.

    Attributes:
        identity: Identifier of the peer (system address for MAVSDK peers).
        is_connected: Whether heartbeats are currently being received.
        has_autopilot: Whether the peer has flight-control capability.
    """

    identity: str
    is_connected: bool = True
    has_autopilot: bool = False


PeerCallback = Callable[[Peer], None]


class PeerSubscription:
    """Handle returned by subscribe_on_new_peer()."""

    def __init__(self, unsubscribe: Callable[[], None]):
        self._unsubscribe = unsubscribe
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Drop the subscription. Safe to call more than once."""
        if self._active:
            self._active = False
            self._unsubscribe()


class MavsdkPeerSource:
    """
    Peer announcements backed by MAVSDK's connection state stream.

    mavsdk_server only reports a system once it has seen an autopilot
    component, so every connected peer it announces has an autopilot.

    Attributes:
        identity: Identity given to announced peers.
    """

    def __init__(self, drone: "System", identity: str = "autopilot"):
        self._drone = drone
        self.identity = identity
        self._callbacks: List[PeerCallback] = []
        self._task: Optional[asyncio.Task] = None

    def subscribe_on_new_peer(self, callback: PeerCallback) -> PeerSubscription:
        """
        Register a callback invoked for every newly connected peer.

        Args:
            callback: Function called with the announced Peer.

        Returns:
            PeerSubscription: Handle used to unregister the callback.
        """
        self._callbacks.append(callback)
        if self._task is None:
            self._task = asyncio.create_task(self._watch_connection_state())
        return PeerSubscription(lambda: self._remove(callback))

    def _remove(self, callback: PeerCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)
        if not self._callbacks and self._task is not None:
            self._task.cancel()
            self._task = None

    async def _watch_connection_state(self) -> None:
        connected = False
        try:
            async for state in self._drone.core.connection_state():
                if state.is_connected and not connected:
                    peer = Peer(identity=self.identity, is_connected=True, has_autopilot=True)
                    for callback in list(self._callbacks):
                        callback(peer)
                elif not state.is_connected and connected:
                    logger.warning("Connection to system lost")
                connected = state.is_connected
        except asyncio.CancelledError:
            pass


async def discover(source, timeout: float = 3.0) -> Optional[Peer]:
    """
    Wait for the first peer that has an autopilot.

    Args:
        source: Object with subscribe_on_new_peer(callback) -> PeerSubscription.
        timeout: Maximum wait in seconds.

    Returns:
        Peer: The discovered autopilot, or None if none was found in time.
    """
    logger.info("Waiting to discover system...")

    loop = asyncio.get_running_loop()
    found: asyncio.Future = loop.create_future()
    subscription: Optional[PeerSubscription] = None

    def resolve(peer: Peer) -> None:
        if not found.done():
            found.set_result(peer)

    def on_new_peer(peer: Peer) -> None:
        if not peer.has_autopilot:
            logger.debug(f"Ignoring system without autopilot: {peer.identity}")
            return
        # Only one system is wanted
        if subscription is not None:
            subscription.unsubscribe()
        loop.call_soon_threadsafe(resolve, peer)

    subscription = source.subscribe_on_new_peer(on_new_peer)
    try:
        peer = await asyncio.wait_for(found, timeout)
    except asyncio.TimeoutError:
        logger.error("No autopilot found.")
        return None
    finally:
        subscription.unsubscribe()

    logger.info(f"Discovered autopilot: {peer.identity}")
    return peer
