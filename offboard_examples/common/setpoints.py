"""
setpoints.py - Offboard setpoint values.

Four immutable representations of a desired vehicle state, each mapped
onto the matching MAVSDK offboard type and setter:

    Attitude      -> Attitude               / set_attitude
    VelocityNed   -> VelocityNedYaw         / set_velocity_ned
    VelocityBody  -> VelocityBodyYawspeed   / set_velocity_body
    PositionNed   -> PositionNedYaw         / set_position_ned
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from mavsdk import offboard as mavsdk_offboard


class SetpointKind(Enum):
    """Setpoint representation. One kind is active per offboard session."""
    ATTITUDE = "ATTITUDE"
    VELOCITY_NED = "VELOCITY NED"
    VELOCITY_BODY = "VELOCITY BODY"
    POSITION_NED = "POSITION NED"


class _Setpoint:
    kind: ClassVar[SetpointKind]
    setter: ClassVar[str]

    def to_mavsdk(self):
        raise NotImplementedError

    async def send(self, offboard) -> None:
        """Send this setpoint through a MAVSDK offboard plugin."""
        await getattr(offboard, self.setter)(self.to_mavsdk())


@dataclass(frozen=True)
class Attitude(_Setpoint):
    """
    Attitude setpoint.

    Attributes:
        roll_deg: Roll angle (positive is right side down).
        pitch_deg: Pitch angle (positive is nose up).
        yaw_deg: Yaw angle (positive is clockwise seen from above).
        thrust: Normalized thrust, 0 (none) to 1 (full).
    """

    roll_deg: float = 0.0
    pitch_deg: float = 0.0
    yaw_deg: float = 0.0
    thrust: float = 0.0

    kind: ClassVar[SetpointKind] = SetpointKind.ATTITUDE
    setter: ClassVar[str] = "set_attitude"

    def __post_init__(self):
        if not 0.0 <= self.thrust <= 1.0:
            raise ValueError(f"Thrust must be within [0, 1], got {self.thrust}")

    def to_mavsdk(self):
        return mavsdk_offboard.Attitude(
            self.roll_deg, self.pitch_deg, self.yaw_deg, self.thrust
        )


@dataclass(frozen=True)
class VelocityNed(_Setpoint):
    """Velocity in the North-East-Down frame with an absolute yaw."""

    north_m_s: float = 0.0
    east_m_s: float = 0.0
    down_m_s: float = 0.0
    yaw_deg: float = 0.0

    kind: ClassVar[SetpointKind] = SetpointKind.VELOCITY_NED
    setter: ClassVar[str] = "set_velocity_ned"

    def to_mavsdk(self):
        return mavsdk_offboard.VelocityNedYaw(
            self.north_m_s, self.east_m_s, self.down_m_s, self.yaw_deg
        )


@dataclass(frozen=True)
class VelocityBody(_Setpoint):
    """
    Velocity in the body frame (forward-right-down) with a yaw rate.

    The body frame is the world frame rotated by the vehicle yaw: pitching
    down does not make "forward" point into the ground.
    """

    forward_m_s: float = 0.0
    right_m_s: float = 0.0
    down_m_s: float = 0.0
    yawspeed_deg_s: float = 0.0

    kind: ClassVar[SetpointKind] = SetpointKind.VELOCITY_BODY
    setter: ClassVar[str] = "set_velocity_body"

    def to_mavsdk(self):
        return mavsdk_offboard.VelocityBodyYawspeed(
            self.forward_m_s, self.right_m_s, self.down_m_s, self.yawspeed_deg_s
        )


@dataclass(frozen=True)
class PositionNed(_Setpoint):
    """Position offset from home in the North-East-Down frame (down is negative up)."""

    north_m: float = 0.0
    east_m: float = 0.0
    down_m: float = 0.0
    yaw_deg: float = 0.0

    kind: ClassVar[SetpointKind] = SetpointKind.POSITION_NED
    setter: ClassVar[str] = "set_position_ned"

    def to_mavsdk(self):
        return mavsdk_offboard.PositionNedYaw(
            self.north_m, self.east_m, self.down_m, self.yaw_deg
        )


Setpoint = Union[Attitude, VelocityNed, VelocityBody, PositionNed]


@dataclass(frozen=True)
class Step:
    """
    One entry of a scripted setpoint sequence.

    Attributes:
        setpoint: Setpoint to hold.
        duration_s: How long to hold it before the next step.
        label: Log message for the step.
    """

    setpoint: Setpoint
    duration_s: float
    label: str = ""

    def __post_init__(self):
        if self.duration_s < 0:
            raise ValueError(f"Step duration must not be negative, got {self.duration_s}")
