"""
Slider gesture mapping.

Turns pointer/touch positions on a fixed-width track into bounded intensity
values. Each accepted event updates the mapper's value synchronously and
forwards it to the downstream consumer. There is no velocity or momentum
modelling; a gesture is just a sequence of positions between begin and end.
"""

from __future__ import annotations

import logging
from typing import Callable

from plantbuddy.domain.normalization import quantize_gesture
from plantbuddy.enums import StepMode

logger = logging.getLogger(__name__)

DEFAULT_TRACK_WIDTH = 300.0


class GestureMapper:
    """Tracks one drag gesture along a horizontal slider track."""

    def __init__(
        self,
        track_width: float = DEFAULT_TRACK_WIDTH,
        origin: float = 0.0,
        is_enabled: Callable[[], bool] | None = None,
        step_mode: Callable[[], StepMode] | None = None,
        on_value: Callable[[int], object] | None = None,
        initial_value: int = 0,
    ):
        """
        Args:
            track_width: Width of the track in pointer units; must be positive
            origin: Pointer coordinate of the track's leading edge
            is_enabled: Returns whether the control currently accepts input
            step_mode: Returns the quantization to apply to the next event
            on_value: Receives every accepted value
            initial_value: Value shown before the first gesture
        """
        if track_width <= 0:
            raise ValueError(f"track_width must be positive, got {track_width}")

        self.track_width = float(track_width)
        self.origin = float(origin)
        self._is_enabled = is_enabled or (lambda: True)
        self._step_mode = step_mode or (lambda: StepMode.FREE)
        self._on_value = on_value
        self._value = initial_value
        self._engaged = False

    @property
    def value(self) -> int:
        return self._value

    @property
    def engaged(self) -> bool:
        return self._engaged

    def begin(self, position: float) -> int | None:
        """Pointer went down on the track. Returns the new value or None if rejected."""
        if not self._is_enabled():
            return None
        self._engaged = True
        return self._update(position)

    def move(self, position: float) -> int | None:
        """Pointer moved while engaged. Returns the new value or None if ignored."""
        if not self._engaged or not self._is_enabled():
            return None
        return self._update(position)

    def end(self) -> None:
        """Pointer lifted or left the track."""
        self._engaged = False

    def sync(self, value: int) -> None:
        """Adopt a value set elsewhere, e.g. from telemetry, without forwarding it."""
        self._value = value

    def _update(self, position: float) -> int:
        offset = position - self.origin
        value = quantize_gesture(offset, self.track_width, self._step_mode())
        self._value = value
        if self._on_value is not None:
            self._on_value(value)
        return value


__all__ = ["DEFAULT_TRACK_WIDTH", "GestureMapper"]
