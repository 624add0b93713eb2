"""
Common utilities for the offboard example programs.

This package provides the shared flow every program follows:
connect, discover, arm, run a scripted command sequence, disarm.

Modules:
    app: Argument parsing, logging setup and run_program().
    config: Timing configuration.
    connection: Connection URL parsing and connection setup.
    discovery: Autopilot discovery.
    results: CommandResult and error types.
    setpoints: Offboard setpoint values and sequence steps.
    refresher: Periodic setpoint refresh while in offboard mode.
    sequencer: Command sequencing state machine.
    telemetry: Telemetry polling and push subscriptions.
"""

from .app import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    connect_and_discover,
    create_argument_parser,
    log_banner,
    run_program,
    setup_logging,
)
from .config import DEFAULT_FLIGHT_CONFIG, FlightConfig
from .connection import (
    ConnectionUrl,
    TransportKind,
    establish_connection,
    parse_connection_url,
    validate_connection_url,
)
from .discovery import MavsdkPeerSource, Peer, PeerSubscription, discover
from .refresher import MIN_REFRESH_RATE_HZ, SetpointRefresher
from .results import (
    CommandResult,
    ConnectionFailed,
    ConnectionUrlError,
    DiscoveryTimeout,
    OffboardExampleError,
    SequenceAborted,
    require,
    sdk_reason,
)
from .sequencer import CommandSequencer, SequencerState
from .setpoints import (
    Attitude,
    PositionNed,
    Setpoint,
    SetpointKind,
    Step,
    VelocityBody,
    VelocityNed,
)
from .telemetry import (
    POLLED_QUANTITIES,
    TelemetryObserver,
    TelemetrySample,
    first_match,
    first_sample,
    format_health,
    format_rc_status,
    format_sample,
    poll_all,
    poll_loop,
    poll_sample,
)

__all__ = [
    # app
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "connect_and_discover",
    "create_argument_parser",
    "log_banner",
    "run_program",
    "setup_logging",
    # config
    "DEFAULT_FLIGHT_CONFIG",
    "FlightConfig",
    # connection
    "ConnectionUrl",
    "TransportKind",
    "establish_connection",
    "parse_connection_url",
    "validate_connection_url",
    # discovery
    "MavsdkPeerSource",
    "Peer",
    "PeerSubscription",
    "discover",
    # refresher
    "MIN_REFRESH_RATE_HZ",
    "SetpointRefresher",
    # results
    "CommandResult",
    "ConnectionFailed",
    "ConnectionUrlError",
    "DiscoveryTimeout",
    "OffboardExampleError",
    "SequenceAborted",
    "require",
    "sdk_reason",
    # sequencer
    "CommandSequencer",
    "SequencerState",
    # setpoints
    "Attitude",
    "PositionNed",
    "Setpoint",
    "SetpointKind",
    "Step",
    "VelocityBody",
    "VelocityNed",
    # telemetry
    "POLLED_QUANTITIES",
    "TelemetryObserver",
    "TelemetrySample",
    "first_match",
    "first_sample",
    "format_health",
    "format_rc_status",
    "format_sample",
    "poll_all",
    "poll_loop",
    "poll_sample",
]
