"""
Light mode state machine.

The grow light is cycled through a fixed three-way table on every press of the
light control. Transitions are synchronous and local; whether the new mode is
also written to the remote store is decided by the session.
"""

from __future__ import annotations

from types import MappingProxyType

from plantbuddy.enums import LightMode, StepMode

LIGHT_MODE_TRANSITIONS = MappingProxyType(
    {
        LightMode.AUTO: LightMode.ON,
        LightMode.ON: LightMode.OFF,
        LightMode.OFF: LightMode.AUTO,
    }
)


def next_light_mode(mode: LightMode) -> LightMode:
    """Return the mode that follows ``mode`` in the cycle."""
    return LIGHT_MODE_TRANSITIONS[LightMode(mode)]


def slider_visible(mode: LightMode) -> bool:
    """The intensity slider is hidden while the device manages light itself."""
    return mode is not LightMode.AUTO


def slider_enabled(mode: LightMode) -> bool:
    return mode is LightMode.ON


def slider_step_mode(mode: LightMode) -> StepMode:
    """Manual "On" mode snaps the intensity to 5% steps."""
    return StepMode.SNAP5 if mode is LightMode.ON else StepMode.FREE


__all__ = [
    "LIGHT_MODE_TRANSITIONS",
    "next_light_mode",
    "slider_enabled",
    "slider_step_mode",
    "slider_visible",
]
