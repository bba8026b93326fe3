"""
Controller session.

Composition root for one device session: owns the :class:`LocalUIState`, wires
the polling loops, the actuator commands and the slider gesture mapper to it,
and exposes the read-only state plus the user actions to whatever renders the
screen.

Usage::

    async with SessionController(client, config) as session:
        session.subscribe(lambda event, snap: render(snap))
        await session.request_pump_activation()

Everything runs on one event loop. Suspension happens only inside remote
calls, so listeners always see a consistent snapshot.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from infrastructure.remote.base import RemoteStateClient
from plantbuddy.config import AppConfig, load_config
from plantbuddy.domain.light_mode import slider_enabled, slider_step_mode
from plantbuddy.domain.normalization import clamp_percent
from plantbuddy.domain.ui_state import LocalUIState
from plantbuddy.enums import CommandOutcome, LightMode, SessionEvent
from plantbuddy.schemas.device import DeviceId
from plantbuddy.schemas.session import UIStateSnapshot
from plantbuddy.services.command_guard import LightModeCommand, PumpCommand
from plantbuddy.services.gesture_mapper import GestureMapper
from plantbuddy.services.polling_service import PollingService

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionEvent, UIStateSnapshot], None]


class SessionController:
    """Device-state synchronization for a single controller screen."""

    def __init__(
        self,
        client: RemoteStateClient,
        config: AppConfig | None = None,
        *,
        device_id: DeviceId | None = None,
    ):
        self.config = config or load_config()
        self.client = client
        self.device_id = device_id if device_id is not None else self.config.device_id

        self._state = LocalUIState(device_id=self.device_id)
        self._listeners: list[StateListener] = []
        self._is_active = False
        self._closed = False

        self.polling = PollingService(
            client,
            self._state,
            self.device_id,
            telemetry_interval_s=self.config.telemetry_interval_s,
            pump_status_interval_s=self.config.pump_status_interval_s,
            water_level_raw_max=self.config.water_level_raw_max,
            on_change=self._notify,
        )
        self.pump = PumpCommand(client, self._state, self.device_id, on_change=self._notify)
        self.light = LightModeCommand(
            client,
            self._state,
            self.device_id,
            persist=self.config.persist_light_mode,
            on_change=self._notify,
        )
        self.slider = GestureMapper(
            track_width=self.config.slider_track_width,
            is_enabled=lambda: slider_enabled(self._state.light_mode),
            step_mode=lambda: slider_step_mode(self._state.light_mode),
            on_value=self.set_light_intensity,
            initial_value=self._state.light_intensity_percent,
        )

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LocalUIState:
        """Live state container. Renderers must treat it as read-only."""
        return self._state

    @property
    def is_active(self) -> bool:
        return self._is_active

    def snapshot(self) -> UIStateSnapshot:
        return self._state.snapshot()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called after every state change.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return

        return unsubscribe

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """Start both polling loops. Idempotent; needs a running event loop."""
        if self._is_active:
            return True

        self.polling.start_polling()
        self._is_active = True
        self._closed = False
        logger.info("🚀 Session started for device %s", self.device_id)
        self._notify(SessionEvent.SESSION_STARTED)
        return True

    def stop(self) -> None:
        """Stop polling; in-flight results are discarded and listeners go quiet. Idempotent."""
        if not self._is_active:
            return

        self.polling.stop_polling()
        self.light.cancel()
        self._is_active = False
        self._closed = True
        logger.info("🛑 Session stopped for device %s", self.device_id)
        self._notify(SessionEvent.SESSION_STOPPED)

    async def aclose(self) -> None:
        self.stop()
        await self.polling.wait_stopped()

    async def __aenter__(self) -> "SessionController":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    async def request_pump_activation(self) -> CommandOutcome:
        """Handle the "Water Now" button."""
        return await self.pump.request_activation()

    def cycle_light_mode(self) -> LightMode:
        """Light button: Auto -> On -> Off -> Auto."""
        return self.light.cycle()

    def set_light_intensity(self, value: int) -> int:
        """Set the local light intensity; no remote write in this variant."""
        value = clamp_percent(value)
        if value != self._state.light_intensity_percent:
            self._state.light_intensity_percent = value
            self._notify(SessionEvent.LIGHT_INTENSITY_CHANGED)
        return value

    def begin_slider_gesture(self, position: float) -> int | None:
        return self.slider.begin(position)

    def move_slider_gesture(self, position: float) -> int | None:
        return self.slider.move(position)

    def end_slider_gesture(self) -> None:
        self.slider.end()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _notify(self, event: SessionEvent) -> None:
        # A write still resolving after stop may change state but is not rendered
        if self._closed and event is not SessionEvent.SESSION_STOPPED:
            return

        if event is SessionEvent.TELEMETRY_UPDATED and not self.slider.engaged:
            self.slider.sync(self._state.light_intensity_percent)

        if not self._listeners:
            return

        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            try:
                listener(event, snapshot)
            except Exception as exc:
                logger.error("Error in state listener for event %s: %s", event.value, exc)

    def get_status(self) -> dict[str, Any]:
        """Returns session status for logs and diagnostics."""
        return {
            "device_id": self.device_id,
            "is_active": self._is_active,
            "polling": self.polling.get_service_status(),
            "commands": {
                "pump": self.pump.guard.to_dict(),
                "light_mode": self.light.guard.to_dict(),
            },
        }


__all__ = ["SessionController", "StateListener"]
