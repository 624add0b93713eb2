#!/usr/bin/env python3
"""
connection.py - Connection URL parsing and connection setup

Turns the single command-line connection URL into a MAVSDK system address
and opens the connection.

Connection URL format:
    - TCP:    tcp://[server_host][:server_port]
    - UDP:    udp://[bind_host][:bind_port]
    - Serial: serial:///path/to/serial/dev[:baudrate]

For example, to connect to the simulator use: udp://:14540

Usage:
    from offboard_examples.common.connection import establish_connection

    drone = await establish_connection("udp://:14540")
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from mavsdk import System

from .results import ConnectionFailed, ConnectionUrlError

logger = logging.getLogger(__name__)


class TransportKind(Enum):
    """Transport named by the connection URL scheme."""
    TCP = "tcp"
    UDP = "udp"
    SERIAL = "serial"


# Default values for parts the URL leaves out
DEFAULTS = {
    "tcp_host": "localhost",
    "tcp_port": 5760,
    "udp_host": "0.0.0.0",  # Listen on all interfaces
    "udp_port": 14540,
    "serial_baud": 57600,  # Standard for TELEM2
}

STANDARD_BAUD_RATES = [9600, 19200, 38400, 57600, 115200, 230400, 460800, 921600]

USAGE = (
    "Connection URL format should be :\n"
    " For TCP : tcp://[server_host][:server_port]\n"
    " For UDP : udp://[bind_host][:bind_port]\n"
    " For Serial : serial:///path/to/serial/dev[:baudrate]\n"
    "For example, to connect to the simulator use URL: udp://:14540"
)


@dataclass
class ConnectionUrl:
    """
    Parsed connection URL.

    Attributes:
        kind: Transport kind.
        raw: The URL as given on the command line.
        host: Server host (TCP) or bind address (UDP).
        port: Server port (TCP) or bind port (UDP).
        device: Serial device path.
        baud: Serial baud rate.
    """
    kind: TransportKind
    raw: str
    host: str = ""
    port: int = 0
    device: str = ""
    baud: int = 0

    def system_address(self) -> str:
        """
        Generate the MAVSDK system address for this URL.

        Returns:
            str: MAVSDK-compatible connection string.
        """
        if self.kind == TransportKind.SERIAL:
            return f"serial://{self.device}:{self.baud}"
        elif self.kind == TransportKind.TCP:
            return f"tcp://{self.host}:{self.port}"
        else:
            # udp:// is deprecated in MAVSDK, udpin:// listens for the autopilot
            return f"udpin://{self.host}:{self.port}"

    def __str__(self) -> str:
        if self.kind == TransportKind.SERIAL:
            return f"Serial: {self.device} @ {self.baud} baud"
        elif self.kind == TransportKind.TCP:
            return f"TCP: {self.host}:{self.port}"
        else:
            return f"UDP: {self.host}:{self.port}"


def _parse_port(text: str, url: str) -> int:
    if not text.isdigit():
        raise ConnectionUrlError(f"Invalid port '{text}' in connection URL: {url}")
    port = int(text)
    if port < 1 or port > 65535:
        raise ConnectionUrlError(f"Port out of range in connection URL: {url}")
    return port


def _split_host_port(rest: str, default_host: str, default_port: int, url: str):
    if "/" in rest:
        raise ConnectionUrlError(f"Unexpected path in connection URL: {url}")
    if ":" in rest:
        host, _, port_text = rest.rpartition(":")
        port = _parse_port(port_text, url) if port_text else default_port
    else:
        host, port = rest, default_port
    return host or default_host, port


def parse_connection_url(url: str) -> ConnectionUrl:
    """
    Parse a connection URL.

    Args:
        url: tcp://, udp:// or serial:// URL.

    Returns:
        ConnectionUrl: The parsed URL with defaults filled in.

    Raises:
        ConnectionUrlError: If the URL is malformed.

    Examples:
        >>> parse_connection_url("udp://:14540").system_address()
        'udpin://0.0.0.0:14540'

        >>> parse_connection_url("serial:///dev/ttyACM0:115200").baud
        115200
    """
    scheme, sep, rest = url.partition("://")
    if not sep:
        raise ConnectionUrlError(f"Missing scheme in connection URL: {url}")

    try:
        kind = TransportKind(scheme.lower())
    except ValueError:
        raise ConnectionUrlError(
            f"Unknown connection type '{scheme}'. Use 'tcp', 'udp', or 'serial'."
        )

    if kind == TransportKind.SERIAL:
        device, baud = rest, DEFAULTS["serial_baud"]
        head, colon, tail = rest.rpartition(":")
        if colon and "/" not in tail:
            if not tail.isdigit():
                raise ConnectionUrlError(f"Invalid baud rate '{tail}' in connection URL: {url}")
            device, baud = head, int(tail)
        if not device:
            raise ConnectionUrlError(f"Missing serial device in connection URL: {url}")
        return ConnectionUrl(kind=kind, raw=url, device=device, baud=baud)

    if kind == TransportKind.TCP:
        host, port = _split_host_port(rest, DEFAULTS["tcp_host"], DEFAULTS["tcp_port"], url)
    else:
        host, port = _split_host_port(rest, DEFAULTS["udp_host"], DEFAULTS["udp_port"], url)
    return ConnectionUrl(kind=kind, raw=url, host=host, port=port)


def check_serial_port(device: str) -> dict:
    """
    Check if a serial port exists and is accessible.

    Args:
        device: Serial device path to check.

    Returns:
        dict: Status information about the port.
    """
    result = {
        "device": device,
        "exists": False,
        "readable": False,
        "writable": False,
        "error": None,
    }

    if not os.path.exists(device):
        result["error"] = "Device does not exist"
        return result

    result["exists"] = True
    result["readable"] = os.access(device, os.R_OK)
    result["writable"] = os.access(device, os.W_OK)

    if not result["readable"] or not result["writable"]:
        result["error"] = (
            "Permission denied. Add user to dialout group: "
            "sudo usermod -aG dialout $USER"
        )

    return result


def validate_connection_url(connection_url: ConnectionUrl) -> dict:
    """
    Validate a parsed connection URL against the local machine.

    Only serial URLs can be checked ahead of time; TCP and UDP problems
    surface when the connection is opened.

    Args:
        connection_url: Parsed connection URL.

    Returns:
        dict: Validation result with 'valid' bool, 'errors' and 'warnings' lists.
    """
    result = {"valid": True, "errors": [], "warnings": []}

    if connection_url.kind != TransportKind.SERIAL:
        return result

    port_status = check_serial_port(connection_url.device)
    if not port_status["exists"]:
        result["valid"] = False
        result["errors"].append(f"Serial device not found: {connection_url.device}")
    elif port_status["error"]:
        result["valid"] = False
        result["errors"].append(port_status["error"])

    if connection_url.baud not in STANDARD_BAUD_RATES:
        result["warnings"].append(
            f"Non-standard baud rate: {connection_url.baud}. "
            f"Common rates: {STANDARD_BAUD_RATES}"
        )

    return result


async def establish_connection(
    url: str,
    system_factory: Optional[Callable[[], System]] = None,
) -> System:
    """
    Open a connection to the vehicle.

    Args:
        url: Connection URL from the command line.
        system_factory: Callable creating the MAVSDK System (default: System).

    Returns:
        System: MAVSDK System with its transport open.

    Raises:
        ConnectionUrlError: If the URL is malformed.
        ConnectionFailed: If the transport could not be opened.
    """
    connection_url = parse_connection_url(url)

    for warning in validate_connection_url(connection_url)["warnings"]:
        logger.warning(warning)

    logger.info(f"Connecting to drone: {connection_url}")
    logger.debug(f"  System address: {connection_url.system_address()}")

    drone = (system_factory or System)()
    try:
        await drone.connect(system_address=connection_url.system_address())
    except Exception as e:
        raise ConnectionFailed(f"Connection failed: {e}") from e

    return drone
