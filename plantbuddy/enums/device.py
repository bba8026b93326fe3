"""
Device Enumerations
===================

Enums describing the plant-care device's controls and the state of
user-issued actuator commands.
"""

from enum import Enum


class LightMode(str, Enum):
    """
    Grow-light operating mode selected by the user.
    Cycled Auto -> On -> Off -> Auto by the light-mode control.
    """

    AUTO = "Auto"
    ON = "On"
    OFF = "Off"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def _missing_(cls, value):
        # Accept "auto"/"ON" etc. from hand-edited rows
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class StepMode(str, Enum):
    """Quantization applied to slider gestures."""

    FREE = "free"
    SNAP5 = "snap5"

    def __str__(self) -> str:
        return self.value


class CommandState(str, Enum):
    """Lifecycle of a single guarded actuator command."""

    IDLE = "idle"
    PENDING = "pending"

    def __str__(self) -> str:
        return self.value


class CommandOutcome(str, Enum):
    """Result of asking the guard to issue a command."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value


class PollerState(str, Enum):
    """Health of a periodic polling loop."""

    STOPPED = "stopped"
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value
