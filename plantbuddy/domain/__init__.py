"""
Domain Package
==============
Pure state and value logic for the controller session: normalization of raw
readings, the light-mode cycle, and the local UI state container.
"""

from .exceptions import (
    ConfigurationError,
    ConflictError,
    InvalidRecordError,
    NetworkFailureError,
    NotFoundError,
    PlantBuddyError,
    RemoteStateError,
)
from .light_mode import LIGHT_MODE_TRANSITIONS, next_light_mode
from .normalization import clamp_percent, normalize_water_level, quantize_gesture
from .ui_state import LocalUIState, WateringFlag

__all__ = [
    # Errors
    "ConfigurationError",
    "ConflictError",
    "InvalidRecordError",
    "NetworkFailureError",
    "NotFoundError",
    "PlantBuddyError",
    "RemoteStateError",
    # Values
    "LIGHT_MODE_TRANSITIONS",
    "clamp_percent",
    "next_light_mode",
    "normalize_water_level",
    "quantize_gesture",
    # State
    "LocalUIState",
    "WateringFlag",
]
