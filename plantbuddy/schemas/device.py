"""
Device Schemas
==============

Pydantic models for the shared device-state record.

Field names are the Python-side names; aliases are the column names used by
the remote store (``water_level``, ``is_moist``, ``is_button_pump`` ...).
Both are accepted on input.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plantbuddy.enums import LightMode

DeviceId = int


class DeviceState(BaseModel):
    """Snapshot of the device-state record as last written to the store.

    Telemetry fields are optional: a column that is missing or null in the
    fetched row is reported as ``None`` and leaves local state untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    device_id: Optional[DeviceId] = Field(default=None, alias="id")
    raw_water_level: Optional[int] = Field(default=None, alias="water_level", description="Raw ADC units")
    light_level: Optional[int] = Field(default=None, alias="light_level", description="Light percentage")
    is_soil_moist: Optional[bool] = Field(default=None, alias="is_moist")
    is_pump_requested: bool = Field(default=False, alias="is_button_pump")
    temperature: Optional[float] = Field(default=None, description="Air temperature in Celsius")
    humidity: Optional[float] = Field(default=None, description="Relative humidity in percent")
    light_mode: Optional[LightMode] = Field(default=None, alias="light_mode")

    @field_validator("is_pump_requested", mode="before")
    def _null_pump_flag_is_false(cls, v):
        return False if v is None else v

    @field_validator("light_mode", mode="before")
    def _ignore_unknown_light_mode(cls, v):
        """An unrecognised mode string is treated as absent rather than fatal."""
        if v is None or isinstance(v, LightMode):
            return v
        try:
            return LightMode(v)
        except ValueError:
            return None


class DeviceStateUpdate(BaseModel):
    """Partial update of the device-state record.

    Only fields that were explicitly set are sent to the store; every other
    column is left untouched.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    raw_water_level: Optional[int] = Field(default=None, alias="water_level")
    light_level: Optional[int] = Field(default=None, alias="light_level", ge=0, le=100)
    is_soil_moist: Optional[bool] = Field(default=None, alias="is_moist")
    is_pump_requested: Optional[bool] = Field(default=None, alias="is_button_pump")
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    light_mode: Optional[LightMode] = Field(default=None, alias="light_mode")

    def to_payload(self) -> dict[str, Any]:
        """Column-keyed dict with only the explicitly set fields."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")

    @classmethod
    def coerce(cls, fields: Union["DeviceStateUpdate", Mapping[str, Any]]) -> "DeviceStateUpdate":
        if isinstance(fields, cls):
            return fields
        return cls.model_validate(dict(fields))
