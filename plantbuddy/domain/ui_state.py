"""
Local UI state for one controller session.

The session controller owns exactly one :class:`LocalUIState`. It is created
with safe defaults when the session starts, refreshed by the polling loops and
user actions, and discarded when the session ends. Nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from plantbuddy.domain.light_mode import slider_enabled, slider_step_mode, slider_visible
from plantbuddy.domain.normalization import DEFAULT_WATER_LEVEL_RAW_MAX, clamp_percent, normalize_water_level
from plantbuddy.enums import LightMode
from plantbuddy.schemas.device import DeviceState
from plantbuddy.schemas.session import UIStateSnapshot
from plantbuddy.utils.time import isoformat_or_none, utc_now

PUMP_LABEL_IDLE = "Water Now"
PUMP_LABEL_ACTIVE = "Watering..."


@dataclass
class WateringFlag:
    """
    Two-phase pump flag: an optimistic local guess and the confirmed remote value.

    The optimistic value, when present, wins for display. Any confirmation from
    the store replaces it. A rollback only undoes the optimistic value it was
    issued for, so a confirmation that lands while a write is still in flight
    is never clobbered by that write's failure.
    """

    confirmed: bool = False
    optimistic: bool | None = None
    _token: int = field(default=0, repr=False)

    @property
    def value(self) -> bool:
        if self.optimistic is not None:
            return self.optimistic
        return self.confirmed

    def set_optimistic(self, value: bool) -> int:
        """Assume ``value`` until confirmed; returns the token for rollback."""
        self._token += 1
        self.optimistic = value
        return self._token

    def confirm(self, value: bool) -> bool:
        """Record the remote value. Returns True if the displayed value changed."""
        before = self.value
        self.confirmed = value
        self.optimistic = None
        self._token += 1
        return before != self.value

    def rollback(self, token: int) -> bool:
        """Drop the optimistic value issued with ``token`` if it is still current."""
        if token != self._token or self.optimistic is None:
            return False
        self.optimistic = None
        return True


@dataclass
class LocalUIState:
    """Derived per-session state rendered by the controller screen."""

    device_id: int
    water_level_percent: int = 0
    light_intensity_percent: int = 0
    soil_moist: bool = True
    temperature: float | None = None
    humidity: float | None = None
    light_mode: LightMode = LightMode.AUTO
    watering: WateringFlag = field(default_factory=WateringFlag)
    last_telemetry_at: datetime | None = None
    last_pump_status_at: datetime | None = None
    last_error: str | None = None

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def apply_telemetry(self, state: DeviceState, raw_max: int = DEFAULT_WATER_LEVEL_RAW_MAX) -> None:
        """Overwrite telemetry fields with every value the record carries."""
        if state.raw_water_level is not None:
            self.water_level_percent = clamp_percent(normalize_water_level(state.raw_water_level, raw_max))
        if state.light_level is not None:
            self.light_intensity_percent = clamp_percent(state.light_level)
        if state.is_soil_moist is not None:
            self.soil_moist = state.is_soil_moist
        if state.temperature is not None:
            self.temperature = state.temperature
        if state.humidity is not None:
            self.humidity = state.humidity
        self.last_telemetry_at = utc_now()
        self.last_error = None

    def apply_pump_status(self, requested: bool) -> bool:
        """Confirm the pump flag from the store. Returns True if the display changed."""
        self.last_pump_status_at = utc_now()
        return self.watering.confirm(requested)

    # ------------------------------------------------------------------
    # Presentation hints
    # ------------------------------------------------------------------

    @property
    def is_watering(self) -> bool:
        return self.watering.value

    @property
    def pump_button_enabled(self) -> bool:
        return not self.is_watering

    @property
    def pump_button_label(self) -> str:
        return PUMP_LABEL_ACTIVE if self.is_watering else PUMP_LABEL_IDLE

    @property
    def soil_label(self) -> str:
        return "Moist" if self.soil_moist else "Dry"

    def snapshot(self) -> UIStateSnapshot:
        return UIStateSnapshot(
            device_id=self.device_id,
            water_level_percent=self.water_level_percent,
            light_intensity_percent=self.light_intensity_percent,
            soil_moist=self.soil_moist,
            temperature=self.temperature,
            humidity=self.humidity,
            light_mode=self.light_mode,
            is_watering=self.is_watering,
            watering_confirmed=self.watering.confirmed,
            pump_button_enabled=self.pump_button_enabled,
            pump_button_label=self.pump_button_label,
            soil_label=self.soil_label,
            needs_watering_hint=not self.soil_moist,
            slider_visible=slider_visible(self.light_mode),
            slider_enabled=slider_enabled(self.light_mode),
            slider_step_mode=slider_step_mode(self.light_mode),
            last_telemetry_at=isoformat_or_none(self.last_telemetry_at),
            last_pump_status_at=isoformat_or_none(self.last_pump_status_at),
            last_error=self.last_error,
        )
