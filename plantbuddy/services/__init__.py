"""
Service Organization
====================
Services that keep a controller session in step with the device:

- polling_service: telemetry and pump-status loops
- command_guard: guarded pump and light-mode commands
- gesture_mapper: slider gesture to intensity mapping
- session_controller: composition root exposed to the renderer
"""

from .command_guard import CommandGuard, LightModeCommand, PumpCommand
from .gesture_mapper import GestureMapper
from .polling_service import PeriodicPoller, PollerHealth, PollingService
from .session_controller import SessionController

__all__ = [
    "CommandGuard",
    "GestureMapper",
    "LightModeCommand",
    "PeriodicPoller",
    "PollerHealth",
    "PollingService",
    "PumpCommand",
    "SessionController",
]
