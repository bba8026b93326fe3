"""
Actuator command guarding.

A user can tap "Water Now" several times before the first request has made
the round-trip to the store. :class:`CommandGuard` turns every actuator
command into an ``Idle -> Pending -> Idle`` state machine so that only one
write per command is ever in flight; issuance while Pending is a no-op.

:class:`PumpCommand` is one-shot: it requests activation by setting the
store's pump flag and relies on the device to clear it when watering is done.
It never writes ``False``.

:class:`LightModeCommand` cycles the light mode locally and, when persistence
is enabled, mirrors the newest mode to the store in the background.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from infrastructure.remote.base import RemoteStateClient
from plantbuddy.domain.exceptions import RemoteStateError
from plantbuddy.domain.light_mode import next_light_mode
from plantbuddy.domain.ui_state import LocalUIState
from plantbuddy.enums import CommandOutcome, CommandState, LightMode, SessionEvent
from plantbuddy.schemas.device import DeviceId, DeviceStateUpdate

logger = logging.getLogger(__name__)


class CommandGuard:
    """Serializes one actuator command: at most one issuance in flight."""

    def __init__(self, name: str):
        self.name = name
        self._state = CommandState.IDLE
        self.issued = 0
        self.succeeded = 0
        self.failed = 0
        self.rejected = 0

    @property
    def state(self) -> CommandState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state is CommandState.PENDING

    def try_begin(self) -> bool:
        """Enter Pending. Returns False (and counts a rejection) if already Pending."""
        if self._state is CommandState.PENDING:
            self.rejected += 1
            logger.debug("Command %s already pending; ignoring duplicate issuance", self.name)
            return False
        self._state = CommandState.PENDING
        self.issued += 1
        return True

    def finish(self, succeeded: bool) -> None:
        """Return to Idle, recording how the command resolved."""
        if succeeded:
            self.succeeded += 1
        else:
            self.failed += 1
        self._state = CommandState.IDLE

    def reject(self) -> CommandOutcome:
        self.rejected += 1
        return CommandOutcome.REJECTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self._state.value,
            "issued": self.issued,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "rejected": self.rejected,
        }


class PumpCommand:
    """One-shot "Water Now" request with optimistic display and rollback."""

    def __init__(
        self,
        client: RemoteStateClient,
        state: LocalUIState,
        device_id: DeviceId,
        on_change: Callable[[SessionEvent], None] | None = None,
    ):
        self.client = client
        self.state = state
        self.device_id = device_id
        self.guard = CommandGuard("pump")
        self._on_change = on_change

    async def request_activation(self) -> CommandOutcome:
        """
        Ask the device to water now.

        The watering flag turns optimistic-true before the write is sent. On
        success it stays until the next pump-status poll confirms either way;
        on failure it is rolled back at once and the error is logged.

        Returns:
            SUCCEEDED, FAILED, or REJECTED (already pending or already watering)
        """
        if self.guard.is_pending:
            return self.guard.reject()
        if self.state.is_watering:
            logger.info("Device %s is already watering; activation request ignored", self.device_id)
            return self.guard.reject()

        # Pending and the optimistic flag are both set before the first await
        self.guard.try_begin()
        token = self.state.watering.set_optimistic(True)
        self._emit(SessionEvent.PUMP_REQUESTED)

        try:
            await self.client.update_state(self.device_id, DeviceStateUpdate(is_pump_requested=True))
        except RemoteStateError as exc:
            self.guard.finish(succeeded=False)
            logger.error("Pump activation for device %s failed: %s", self.device_id, exc)
            self.state.watering.rollback(token)
            self.state.last_error = str(exc) or type(exc).__name__
            self._emit(SessionEvent.PUMP_REQUEST_FAILED)
            return CommandOutcome.FAILED
        except BaseException:
            # Cancelled or crashed mid-write: never leave a phantom "watering"
            self.guard.finish(succeeded=False)
            self.state.watering.rollback(token)
            raise

        self.guard.finish(succeeded=True)
        logger.info("💧 Pump activation requested for device %s", self.device_id)
        return CommandOutcome.SUCCEEDED

    def _emit(self, event: SessionEvent) -> None:
        if self._on_change is not None:
            self._on_change(event)


class LightModeCommand:
    """Auto -> On -> Off -> Auto cycling with optional remote persistence."""

    def __init__(
        self,
        client: RemoteStateClient,
        state: LocalUIState,
        device_id: DeviceId,
        persist: bool = False,
        on_change: Callable[[SessionEvent], None] | None = None,
    ):
        self.client = client
        self.state = state
        self.device_id = device_id
        self.persist = persist
        self.guard = CommandGuard("light_mode")
        self._on_change = on_change
        self._task: asyncio.Task | None = None

    def cycle(self) -> LightMode:
        """Advance to the next mode synchronously and return it."""
        mode = next_light_mode(self.state.light_mode)
        self.state.light_mode = mode
        logger.info("Light mode for device %s set to %s", self.device_id, mode)
        self._emit(SessionEvent.LIGHT_MODE_CHANGED)

        if self.persist:
            self._schedule_persist()
        return mode

    def _schedule_persist(self) -> None:
        if self._task is not None and not self._task.done():
            # The scheduled writer re-checks the mode after each write
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; light mode %s not persisted", self.state.light_mode)
            return
        self._task = loop.create_task(self.persist_current(), name="persist-light-mode")

    async def persist_current(self) -> CommandOutcome:
        """Write the current mode, repeating until the store holds the newest one."""
        if not self.guard.try_begin():
            return CommandOutcome.REJECTED

        succeeded = False
        try:
            while True:
                mode = self.state.light_mode
                await self.client.update_state(self.device_id, DeviceStateUpdate(light_mode=mode))
                if self.state.light_mode is mode:
                    break
            succeeded = True
        except RemoteStateError as exc:
            # Local mode stays; the device simply keeps its previous setting
            logger.error("Persisting light mode for device %s failed: %s", self.device_id, exc)
            self.state.last_error = str(exc) or type(exc).__name__
        finally:
            self.guard.finish(succeeded)

        return CommandOutcome.SUCCEEDED if succeeded else CommandOutcome.FAILED

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _emit(self, event: SessionEvent) -> None:
        if self._on_change is not None:
            self._on_change(event)


__all__ = ["CommandGuard", "LightModeCommand", "PumpCommand"]
