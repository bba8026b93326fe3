"""
Enums Module
============

This module provides enumeration types for the Plant Buddy client.
Enums ensure type safety and consistency across the codebase.
"""

from plantbuddy.enums.device import (
    CommandOutcome,
    CommandState,
    LightMode,
    PollerState,
    StepMode,
)
from plantbuddy.enums.events import PollerName, SessionEvent

__all__ = [
    "CommandOutcome",
    "CommandState",
    "LightMode",
    "PollerName",
    "PollerState",
    "SessionEvent",
    "StepMode",
]
