"""
Schemas Package
===============

Pydantic models for the remote device-state record and the UI snapshot.
"""

from .device import DeviceId, DeviceState, DeviceStateUpdate
from .session import UIStateSnapshot

__all__ = [
    "DeviceId",
    "DeviceState",
    "DeviceStateUpdate",
    "UIStateSnapshot",
]
