"""
Session Schemas
===============

Read-only snapshot of the local UI state handed to the renderer.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from plantbuddy.enums import LightMode, StepMode


class UIStateSnapshot(BaseModel):
    """Everything a renderer needs to draw one frame of the controller screen."""

    model_config = ConfigDict(frozen=True)

    device_id: int
    water_level_percent: int = Field(..., ge=0, le=100)
    light_intensity_percent: int = Field(..., ge=0, le=100)
    soil_moist: bool
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light_mode: LightMode
    is_watering: bool
    watering_confirmed: bool

    # Presentation hints
    pump_button_enabled: bool
    pump_button_label: str
    soil_label: str
    needs_watering_hint: bool
    slider_visible: bool
    slider_enabled: bool
    slider_step_mode: StepMode

    last_telemetry_at: Optional[str] = None
    last_pump_status_at: Optional[str] = None
    last_error: Optional[str] = None
