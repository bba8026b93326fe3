"""
Value normalization for raw sensor units and slider gestures.

Pure functions only; identical inputs always give identical outputs.
Rounding is half-up (``floor(x + 0.5)``) throughout so that a reading sitting
exactly between two percentages always rounds the same way regardless of
Python's banker's rounding.
"""

from __future__ import annotations

import math

from plantbuddy.enums import StepMode

DEFAULT_WATER_LEVEL_RAW_MAX = 1023
PERCENT_MIN = 0
PERCENT_MAX = 100
SNAP_STEP = 5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: float) -> int:
    """Clamp a value into the displayable ``[0, 100]`` integer range."""
    # Clamp before rounding so infinities never reach math.floor
    return round_half_up(max(PERCENT_MIN, min(PERCENT_MAX, value)))


def normalize_water_level(raw: int, raw_max: int = DEFAULT_WATER_LEVEL_RAW_MAX) -> int:
    """
    Convert a raw water-level reading into a display percentage.

    Args:
        raw: Device-native reading (0..raw_max for a healthy sensor)
        raw_max: Full-scale value of the sensor's ADC (1023 for 10-bit)

    Returns:
        Percentage rounded half-up. Inputs outside ``0..raw_max`` are a
        caller contract violation and are not validated here.
    """
    return round_half_up(raw / raw_max * 100)


def quantize_gesture(position: float, track_width: float, step_mode: StepMode | str = StepMode.FREE) -> int:
    """
    Map a pointer offset along a slider track to an intensity value.

    Args:
        position: Offset from the track's leading edge, in track units.
            May be negative or past the end of the track.
        track_width: Width of the track, must be positive
        step_mode: ``StepMode.FREE`` or ``StepMode.SNAP5``

    Returns:
        Integer in ``[0, 100]``; a multiple of 5 when snapping.
    """
    if track_width <= 0:
        raise ValueError(f"track_width must be positive, got {track_width}")

    value = clamp_percent(position / track_width * 100)
    if StepMode(step_mode) is StepMode.SNAP5:
        value = round_half_up(value / SNAP_STEP) * SNAP_STEP
    return value


__all__ = [
    "DEFAULT_WATER_LEVEL_RAW_MAX",
    "clamp_percent",
    "normalize_water_level",
    "quantize_gesture",
    "round_half_up",
]
