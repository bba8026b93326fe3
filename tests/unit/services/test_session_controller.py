"""
End-to-end tests for plantbuddy.services.session_controller.

A session runs against the in-memory store with fast polling intervals, so
each scenario completes in a fraction of a second.
"""

import asyncio

import pytest

from infrastructure.remote.memory_client import InMemoryStateClient
from plantbuddy.domain.exceptions import ConfigurationError
from plantbuddy.enums import CommandOutcome, LightMode, SessionEvent, StepMode
from plantbuddy.services.session_controller import SessionController


def test_initial_snapshot_uses_safe_defaults(session):
    snap = session.snapshot()

    assert snap.water_level_percent == 0
    assert snap.light_intensity_percent == 0
    assert snap.soil_moist is True
    assert snap.light_mode is LightMode.AUTO
    assert snap.is_watering is False
    assert snap.pump_button_label == "Water Now"
    assert snap.slider_visible is False


def test_device_id_override(store, config):
    session = SessionController(store, config, device_id=9)
    assert session.device_id == 9
    assert session.state.device_id == 9


def test_session_reflects_remote_telemetry(session, recorder):
    session.subscribe(recorder)

    async def scenario():
        async with session:
            await asyncio.sleep(0.03)

    asyncio.run(scenario())

    snap = session.snapshot()
    assert snap.water_level_percent == 75
    assert snap.light_intensity_percent == 65
    assert snap.soil_label == "Moist"
    assert recorder.events[0] is SessionEvent.SESSION_STARTED
    assert SessionEvent.TELEMETRY_UPDATED in recorder.events
    assert recorder.events[-1] is SessionEvent.SESSION_STOPPED
    assert session.is_active is False


def test_water_now_flow_until_device_clears_flag(session, store, recorder):
    session.subscribe(recorder)

    async def scenario():
        async with session:
            await asyncio.sleep(0.03)
            before = session.snapshot()

            outcome = await session.request_pump_activation()

            # Pump-status loop observes the flag the request wrote
            await asyncio.sleep(0.05)
            confirmed = session.snapshot()

            # Device finishes watering and clears the flag
            store.set_fields(1, is_button_pump=False)
            await asyncio.sleep(0.06)
            return before, outcome, confirmed, session.snapshot()

    before, outcome, confirmed, after = asyncio.run(scenario())

    assert before.water_level_percent == 75
    assert before.is_watering is False
    assert before.pump_button_enabled is True
    assert before.pump_button_label == "Water Now"

    assert outcome is CommandOutcome.SUCCEEDED
    optimistic = next(snap for event, snap in recorder.calls if event is SessionEvent.PUMP_REQUESTED)
    assert optimistic.is_watering is True
    assert optimistic.watering_confirmed is False
    assert optimistic.pump_button_label == "Watering..."
    assert optimistic.pump_button_enabled is False

    assert confirmed.is_watering is True
    assert confirmed.watering_confirmed is True
    assert confirmed.pump_button_label == "Watering..."

    assert after.is_watering is False
    assert after.watering_confirmed is False
    assert after.pump_button_label == "Water Now"


def test_device_button_shows_watering(session, store):
    async def scenario():
        async with session:
            store.set_fields(1, is_button_pump=True)
            await asyncio.sleep(0.06)
            return session.snapshot()

    snap = asyncio.run(scenario())
    assert snap.is_watering is True
    assert snap.watering_confirmed is True


def test_network_outage_keeps_stale_state(session, store):
    async def scenario():
        async with session:
            await asyncio.sleep(0.03)
            store.fail_next_fetch(times=1000)
            store.set_fields(1, water_level=0, light_level=0)
            await asyncio.sleep(0.1)
            return session.snapshot()

    snap = asyncio.run(scenario())

    assert snap.water_level_percent == 75
    assert snap.light_intensity_percent == 65
    assert snap.last_error == "Simulated fetch failure"


def test_start_and_stop_are_idempotent(session, recorder):
    session.subscribe(recorder)

    async def scenario():
        session.start()
        session.start()
        session.stop()
        session.stop()
        await session.aclose()

    asyncio.run(scenario())
    assert recorder.events.count(SessionEvent.SESSION_STARTED) == 1
    assert recorder.events.count(SessionEvent.SESSION_STOPPED) == 1


def test_no_updates_after_stop(config, recorder):
    slow = InMemoryStateClient(latency_s=0.05)
    slow.seed(1, water_level=1023, light_level=90)
    session = SessionController(slow, config)
    session.subscribe(recorder)

    async def scenario():
        session.start()
        await asyncio.sleep(0.01)
        session.stop()
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert session.state.water_level_percent == 0
    assert SessionEvent.TELEMETRY_UPDATED not in recorder.events


def test_light_cycle_controls_slider(session):
    assert session.cycle_light_mode() is LightMode.ON
    snap = session.snapshot()
    assert snap.slider_visible is True
    assert snap.slider_enabled is True
    assert snap.slider_step_mode is StepMode.SNAP5

    assert session.begin_slider_gesture(152) == 50
    assert session.move_slider_gesture(159) == 55
    session.end_slider_gesture()
    assert session.state.light_intensity_percent == 55

    assert session.cycle_light_mode() is LightMode.OFF
    snap = session.snapshot()
    assert snap.slider_visible is True
    assert snap.slider_enabled is False
    assert session.begin_slider_gesture(300) is None
    assert session.state.light_intensity_percent == 55

    assert session.cycle_light_mode() is LightMode.AUTO
    assert session.snapshot().slider_visible is False


def test_slider_ignored_in_auto_mode(session):
    assert session.begin_slider_gesture(150) is None
    assert session.state.light_intensity_percent == 0


def test_set_light_intensity_clamps_and_notifies_once(session, recorder):
    session.subscribe(recorder)

    assert session.set_light_intensity(140) == 100
    assert session.set_light_intensity(100) == 100
    assert recorder.events == [SessionEvent.LIGHT_INTENSITY_CHANGED]


def test_telemetry_resyncs_idle_slider(session):
    asyncio.run(session.polling.tick_telemetry())
    assert session.slider.value == 65


def test_telemetry_does_not_move_slider_mid_gesture(session):
    session.cycle_light_mode()
    session.begin_slider_gesture(30)

    asyncio.run(session.polling.tick_telemetry())

    assert session.slider.value == 10
    assert session.state.light_intensity_percent == 65


def test_unsubscribe_stops_notifications(session, recorder):
    unsubscribe = session.subscribe(recorder)
    unsubscribe()
    unsubscribe()

    session.cycle_light_mode()
    assert recorder.calls == []


def test_failing_listener_does_not_break_others(session, recorder):
    def broken(event, snapshot):
        raise RuntimeError("render crashed")

    session.subscribe(broken)
    session.subscribe(recorder)

    session.cycle_light_mode()
    assert recorder.events == [SessionEvent.LIGHT_MODE_CHANGED]


def test_persisted_light_mode_reaches_store(store, config):
    config.persist_light_mode = True
    session = SessionController(store, config)

    async def scenario():
        async with session:
            session.cycle_light_mode()
            await asyncio.sleep(0.01)

    asyncio.run(scenario())
    assert store.get_record(1)["light_mode"] == "On"


def test_get_status(session):
    status = session.get_status()

    assert status["device_id"] == 1
    assert status["is_active"] is False
    assert set(status["polling"]["pollers"]) == {"telemetry", "pump_status"}
    assert status["commands"]["pump"]["state"] == "idle"


@pytest.mark.parametrize("raw, expected", [(0, 0), (512, 50), (1023, 100)])
def test_water_level_display(store, config, raw, expected):
    store.set_fields(1, water_level=raw)
    session = SessionController(store, config)
    asyncio.run(session.polling.tick_telemetry())
    assert session.snapshot().water_level_percent == expected


def test_stop_cancels_pending_light_mode_write(store, config):
    config.persist_light_mode = True
    session = SessionController(store, config)

    async def scenario():
        store.hold()
        session.start()
        session.cycle_light_mode()
        writer = session.light._task
        session.cycle_light_mode()
        assert session.light._task is writer

        await session.aclose()
        store.release()
        await asyncio.sleep(0.02)
        return writer

    writer = asyncio.run(scenario())

    assert writer.cancelled()
    assert "light_mode" not in store.get_record(1)
    assert store.updates == []


def test_failed_pump_write_after_stop_is_not_rendered(session, store, recorder):
    session.subscribe(recorder)

    async def scenario():
        store.hold()
        store.fail_next_update()
        session.start()
        request = asyncio.create_task(session.request_pump_activation())
        await asyncio.sleep(0)
        session.stop()
        store.release()
        return await request

    assert asyncio.run(scenario()) is CommandOutcome.FAILED
    assert recorder.events[-1] is SessionEvent.SESSION_STOPPED
    assert SessionEvent.PUMP_REQUEST_FAILED not in recorder.events
    assert session.state.is_watering is False


def test_non_positive_raw_max_is_a_configuration_error(store, config):
    config.water_level_raw_max = 0
    with pytest.raises(ConfigurationError):
        SessionController(store, config)
