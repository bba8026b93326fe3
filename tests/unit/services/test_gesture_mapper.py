import pytest

from plantbuddy.enums import StepMode
from plantbuddy.services.gesture_mapper import GestureMapper


def test_begin_and_move_forward_values():
    received = []
    mapper = GestureMapper(track_width=300, on_value=received.append)

    assert mapper.begin(30) == 10
    assert mapper.move(150) == 50
    assert mapper.move(400) == 100
    assert received == [10, 50, 100]
    assert mapper.value == 100


def test_origin_offsets_positions():
    mapper = GestureMapper(track_width=200, origin=50)
    assert mapper.begin(150) == 50
    assert mapper.move(20) == 0


def test_move_without_begin_is_ignored():
    mapper = GestureMapper()
    assert mapper.move(150) is None
    assert mapper.value == 0


def test_end_disengages():
    mapper = GestureMapper()
    mapper.begin(10)
    assert mapper.engaged is True

    mapper.end()
    assert mapper.engaged is False
    assert mapper.move(200) is None


def test_disabled_control_ignores_input():
    received = []
    mapper = GestureMapper(is_enabled=lambda: False, on_value=received.append, initial_value=40)

    assert mapper.begin(100) is None
    assert mapper.engaged is False
    assert mapper.value == 40
    assert received == []


def test_disabling_mid_gesture_drops_further_moves():
    enabled = {"value": True}
    mapper = GestureMapper(is_enabled=lambda: enabled["value"])
    mapper.begin(30)

    enabled["value"] = False
    assert mapper.move(240) is None
    assert mapper.value == 10


def test_step_mode_is_read_per_event():
    mode = {"value": StepMode.FREE}
    mapper = GestureMapper(step_mode=lambda: mode["value"])

    assert mapper.begin(159) == 53
    mode["value"] = StepMode.SNAP5
    assert mapper.move(159) == 55


def test_sync_does_not_forward():
    received = []
    mapper = GestureMapper(on_value=received.append)
    mapper.sync(65)

    assert mapper.value == 65
    assert received == []


def test_track_width_must_be_positive():
    with pytest.raises(ValueError):
        GestureMapper(track_width=0)
