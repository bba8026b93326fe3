"""
Unit tests for plantbuddy.domain.ui_state.

Covers the two-phase watering flag and telemetry reconciliation.
"""

from plantbuddy.domain.ui_state import PUMP_LABEL_ACTIVE, PUMP_LABEL_IDLE, LocalUIState, WateringFlag
from plantbuddy.enums import LightMode, StepMode
from plantbuddy.schemas.device import DeviceState


def _record(**columns):
    return DeviceState.model_validate({"id": 1, **columns})


class TestWateringFlag:
    def test_defaults_to_not_watering(self):
        flag = WateringFlag()
        assert flag.value is False
        assert flag.optimistic is None

    def test_optimistic_value_wins_for_display(self):
        flag = WateringFlag()
        flag.set_optimistic(True)
        assert flag.value is True
        assert flag.confirmed is False

    def test_rollback_restores_confirmed_value(self):
        flag = WateringFlag()
        token = flag.set_optimistic(True)
        assert flag.rollback(token) is True
        assert flag.value is False

    def test_confirmation_replaces_optimistic_value(self):
        flag = WateringFlag()
        flag.set_optimistic(True)
        changed = flag.confirm(False)
        assert changed is True
        assert flag.optimistic is None
        assert flag.value is False

    def test_rollback_after_confirmation_is_ignored(self):
        flag = WateringFlag()
        token = flag.set_optimistic(True)
        flag.confirm(True)

        assert flag.rollback(token) is False
        assert flag.value is True

    def test_confirm_reports_unchanged_display(self):
        flag = WateringFlag(confirmed=True)
        assert flag.confirm(True) is False


class TestLocalUIState:
    def test_safe_defaults(self):
        state = LocalUIState(device_id=1)
        assert state.water_level_percent == 0
        assert state.light_intensity_percent == 0
        assert state.soil_moist is True
        assert state.light_mode is LightMode.AUTO
        assert state.is_watering is False
        assert state.pump_button_label == PUMP_LABEL_IDLE

    def test_apply_telemetry_normalizes_water_level(self):
        state = LocalUIState(device_id=1)
        state.apply_telemetry(_record(water_level=767, light_level=65, is_moist=False))

        assert state.water_level_percent == 75
        assert state.light_intensity_percent == 65
        assert state.soil_moist is False
        assert state.soil_label == "Dry"
        assert state.last_telemetry_at is not None

    def test_apply_telemetry_clamps_out_of_range_readings(self):
        state = LocalUIState(device_id=1)
        state.apply_telemetry(_record(water_level=2000, light_level=140))

        assert state.water_level_percent == 100
        assert state.light_intensity_percent == 100

    def test_missing_columns_keep_previous_values(self):
        state = LocalUIState(device_id=1, water_level_percent=40, light_intensity_percent=30, soil_moist=False)
        state.apply_telemetry(_record(temperature=21.5))

        assert state.water_level_percent == 40
        assert state.light_intensity_percent == 30
        assert state.soil_moist is False
        assert state.temperature == 21.5

    def test_apply_telemetry_clears_last_error(self):
        state = LocalUIState(device_id=1, last_error="boom")
        state.apply_telemetry(_record(water_level=0))
        assert state.last_error is None

    def test_telemetry_does_not_touch_light_mode_or_pump(self):
        state = LocalUIState(device_id=1, light_mode=LightMode.OFF)
        state.apply_telemetry(_record(is_button_pump=True, light_mode="On"))

        assert state.light_mode is LightMode.OFF
        assert state.is_watering is False

    def test_apply_pump_status_updates_label(self):
        state = LocalUIState(device_id=1)
        assert state.apply_pump_status(True) is True

        assert state.is_watering is True
        assert state.pump_button_enabled is False
        assert state.pump_button_label == PUMP_LABEL_ACTIVE
        assert state.last_pump_status_at is not None

    def test_snapshot_carries_presentation_hints(self):
        state = LocalUIState(device_id=7, light_mode=LightMode.ON, soil_moist=False)
        snap = state.snapshot()

        assert snap.device_id == 7
        assert snap.slider_visible is True
        assert snap.slider_enabled is True
        assert snap.slider_step_mode is StepMode.SNAP5
        assert snap.needs_watering_hint is True
        assert snap.pump_button_label == PUMP_LABEL_IDLE
        assert snap.last_telemetry_at is None
