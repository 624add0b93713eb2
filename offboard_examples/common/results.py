"""
results.py - Command results and error types.

Every discrete vehicle command (arm, takeoff, land, kill, start/stop
offboard, setpoint send) resolves to a CommandResult. Steps that must not
fail are wrapped with require(), which raises SequenceAborted.
"""

from dataclasses import dataclass


class OffboardExampleError(Exception):
    """Base class for fatal errors raised by the example programs."""


class ConnectionFailed(OffboardExampleError):
    """The transport could not be opened."""


class ConnectionUrlError(ConnectionFailed, ValueError):
    """The connection URL is malformed."""


class DiscoveryTimeout(OffboardExampleError):
    """No autopilot announced itself within the discovery timeout."""


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of a single vehicle command.

    Attributes:
        command: Name of the command, e.g. "arm" or "offboard start".
        success: Whether the command succeeded.
        reason: Failure reason reported by the SDK (empty on success).
    """

    command: str
    success: bool
    reason: str = ""

    @classmethod
    def ok(cls, command: str) -> "CommandResult":
        return cls(command=command, success=True)

    @classmethod
    def failed(cls, command: str, reason: str) -> "CommandResult":
        return cls(command=command, success=False, reason=reason)

    def __bool__(self) -> bool:
        return self.success

    def __str__(self) -> str:
        if self.success:
            return f"{self.command}: SUCCESS"
        return f"{self.command} failed: {self.reason}"


class SequenceAborted(OffboardExampleError):
    """A command whose failure is fatal to the run did not succeed."""

    def __init__(self, result: CommandResult):
        super().__init__(str(result))
        self.result = result


def require(result: CommandResult) -> CommandResult:
    """
    Abort the run if a command failed.

    Args:
        result: Result of the command.

    Returns:
        CommandResult: The same result, when successful.

    Raises:
        SequenceAborted: If the command failed.
    """
    if not result.success:
        raise SequenceAborted(result)
    return result


def sdk_reason(error: Exception) -> str:
    """Extract the SDK result name from a MAVSDK plugin error."""
    result = getattr(error, "_result", None)
    if result is None:
        return str(error)
    reason = str(result.result)
    result_str = getattr(result, "result_str", "")
    if result_str:
        reason = f"{reason} ({result_str})"
    return reason
