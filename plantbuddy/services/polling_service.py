# plantbuddy/services/polling_service.py
"""
Device State Polling Service
============================
Keeps a session's local UI state in step with the remote device-state record.

Features:
- Two independent periodic loops on the session's event loop:
  telemetry (water, light, moisture, climate) and pump status
- Strictly sequential ticks per loop; the next tick never starts before the
  previous tick's I/O resolves
- Stale-but-available policy: a failed tick leaves the last good state intact
- Deterministic stop: a generation counter discards any result that arrives
  after the loop was stopped
- Health tracking per loop for status endpoints and logs
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Generic, TypeVar

from infrastructure.remote.base import RemoteStateClient
from plantbuddy.domain.exceptions import ConfigurationError, RemoteStateError
from plantbuddy.domain.normalization import DEFAULT_WATER_LEVEL_RAW_MAX
from plantbuddy.domain.ui_state import LocalUIState
from plantbuddy.enums import PollerName, PollerState, SessionEvent
from plantbuddy.schemas.device import DeviceId, DeviceState
from plantbuddy.utils.time import isoformat_or_none, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TELEMETRY_INTERVAL_S = 10.0
DEFAULT_PUMP_STATUS_INTERVAL_S = 3.0


class PollerHealth:
    """Tracks the operational state of one polling loop."""

    def __init__(self, name: str):
        self.name = name
        self.status = PollerState.UNKNOWN
        self.ticks = 0
        self.failure_count = 0
        self.total_failures = 0
        self.discarded_results = 0
        self.last_success: datetime | None = None
        self.last_error: str | None = None

    def record_success(self) -> None:
        self.ticks += 1
        self.status = PollerState.HEALTHY
        self.failure_count = 0
        self.last_success = utc_now()
        self.last_error = None

    def record_failure(self, error_msg: str) -> None:
        self.ticks += 1
        self.status = PollerState.DEGRADED
        self.failure_count += 1
        self.total_failures += 1
        self.last_error = error_msg

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "ticks": self.ticks,
            "failure_count": self.failure_count,
            "total_failures": self.total_failures,
            "discarded_results": self.discarded_results,
            "last_success": isoformat_or_none(self.last_success),
            "last_error": self.last_error,
        }


class PeriodicPoller(Generic[T]):
    """
    One cancellable periodic loop: fetch, then apply the result.

    ``fetch`` is awaited; ``apply`` and ``on_error`` are plain callables run
    between suspension points, so they never interleave with other state
    mutation on the same event loop.
    """

    def __init__(
        self,
        name: str,
        interval_s: float,
        fetch: Callable[[], Awaitable[T]],
        apply: Callable[[T], None],
        on_error: Callable[[Exception], None] | None = None,
        min_sleep_s: float = 0.0,
    ):
        if interval_s <= 0:
            raise ValueError(f"{name} interval must be positive, got {interval_s}")

        self.name = name
        self.interval_s = float(interval_s)
        self.min_sleep_s = max(0.0, float(min_sleep_s))
        self._fetch = fetch
        self._apply = apply
        self._on_error = on_error

        self.health = PollerHealth(name)

        # Bumped on every stop; results from an older generation are dropped
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    # -------------------------------------------------------------------------
    # Lifecycle Management
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        """Start the loop on the running event loop. Idempotent."""
        if self._is_running:
            return True

        loop = asyncio.get_running_loop()
        self._generation += 1
        self._is_running = True
        self._task = loop.create_task(self._run(self._generation), name=f"poll-{self.name}")
        logger.info("Poller %s started (%.1fs interval)", self.name, self.interval_s)
        return True

    def stop(self) -> None:
        """Stop the loop. In-flight results are discarded. Idempotent."""
        if not self._is_running:
            return

        self._generation += 1
        self._is_running = False
        self.health.status = PollerState.STOPPED
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Poller %s stopped", self.name)

    async def wait_stopped(self) -> None:
        """Wait until a stopped loop's task has actually unwound."""
        task = self._task
        if task is None or self._is_running:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._task = None

    # -------------------------------------------------------------------------
    # Core Logic
    # -------------------------------------------------------------------------

    async def run_once(self) -> bool:
        """
        Run a single tick now. Returns True if a result was applied.

        This is a manual refresh and runs whether or not the periodic loop is
        started; only results of the loop itself are dropped after ``stop``.
        """
        return await self._tick(self._generation)

    async def _run(self, generation: int) -> None:
        """Periodic loop; ticks are strictly sequential."""
        loop = asyncio.get_running_loop()
        while self._generation == generation:
            t_start = loop.time()
            await self._tick(generation)

            # Keep a steady cadence regardless of request latency
            elapsed = loop.time() - t_start
            await asyncio.sleep(max(self.min_sleep_s, self.interval_s - elapsed))

    async def _tick(self, generation: int) -> bool:
        try:
            result = await self._fetch()
            if self._is_stale(generation):
                return False
            self._apply(result)
        except RemoteStateError as exc:
            if self._is_stale(generation):
                return False
            self._handle_failure(exc)
            return False
        except Exception as exc:
            if self._is_stale(generation):
                return False
            logger.exception("Poller %s tick raised unexpectedly: %s", self.name, exc)
            self._handle_failure(exc)
            return False

        self.health.record_success()
        logger.debug("Poller %s tick applied", self.name)
        return True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _is_stale(self, generation: int) -> bool:
        if self._generation == generation:
            return False
        self.health.discarded_results += 1
        logger.debug("Poller %s discarded a result that arrived after stop", self.name)
        return True

    def _handle_failure(self, exc: Exception) -> None:
        self.health.record_failure(str(exc))

        if self.health.failure_count == 1 or self.health.failure_count % 10 == 0:
            # Transient failures warn, anything else logs as an error
            level = logging.WARNING if getattr(exc, "transient", False) else logging.ERROR
            logger.log(
                level,
                "Poller %s failed (%d consecutive): %s; keeping last known state",
                self.name,
                self.health.failure_count,
                exc,
            )

        if self._on_error is not None:
            self._on_error(exc)


class PollingService:
    """
    Runs the telemetry and pump-status loops for one device session.

    The pump-status loop runs on a shorter interval than telemetry because
    actuator confirmation latency matters more to the user than telemetry
    freshness.
    """

    def __init__(
        self,
        client: RemoteStateClient,
        state: LocalUIState,
        device_id: DeviceId,
        telemetry_interval_s: float = DEFAULT_TELEMETRY_INTERVAL_S,
        pump_status_interval_s: float = DEFAULT_PUMP_STATUS_INTERVAL_S,
        water_level_raw_max: int = DEFAULT_WATER_LEVEL_RAW_MAX,
        on_change: Callable[[SessionEvent], None] | None = None,
    ):
        if water_level_raw_max <= 0:
            raise ConfigurationError(f"water_level_raw_max must be positive, got {water_level_raw_max}")

        self.client = client
        self.state = state
        self.device_id = device_id
        self.water_level_raw_max = water_level_raw_max
        self._on_change = on_change

        self.telemetry = PeriodicPoller(
            PollerName.TELEMETRY.value,
            telemetry_interval_s,
            fetch=self._fetch_state,
            apply=self._apply_telemetry,
            on_error=self._record_error,
        )
        self.pump_status = PeriodicPoller(
            PollerName.PUMP_STATUS.value,
            pump_status_interval_s,
            fetch=self._fetch_state,
            apply=self._apply_pump_status,
            on_error=self._record_error,
        )

        logger.info(
            "PollingService initialized for device %s (telemetry=%ss, pump=%ss)",
            device_id,
            telemetry_interval_s,
            pump_status_interval_s,
        )

    @property
    def is_running(self) -> bool:
        return self.telemetry.is_running or self.pump_status.is_running

    # -------------------------------------------------------------------------
    # Lifecycle Management
    # -------------------------------------------------------------------------

    def start_polling(self) -> bool:
        """Start both loops. Must be called from inside the event loop."""
        self.telemetry.start()
        self.pump_status.start()
        return True

    def stop_polling(self) -> None:
        self.telemetry.stop()
        self.pump_status.stop()

    async def wait_stopped(self) -> None:
        await self.telemetry.wait_stopped()
        await self.pump_status.wait_stopped()

    # -------------------------------------------------------------------------
    # Manual ticks
    # -------------------------------------------------------------------------

    async def tick_telemetry(self) -> bool:
        return await self.telemetry.run_once()

    async def tick_pump_status(self) -> bool:
        return await self.pump_status.run_once()

    # -------------------------------------------------------------------------
    # Fetch / Apply
    # -------------------------------------------------------------------------

    async def _fetch_state(self) -> DeviceState:
        return await self.client.fetch_state(self.device_id)

    def _apply_telemetry(self, record: DeviceState) -> None:
        self.state.apply_telemetry(record, self.water_level_raw_max)
        self._emit(SessionEvent.TELEMETRY_UPDATED)

    def _apply_pump_status(self, record: DeviceState) -> None:
        changed = self.state.apply_pump_status(record.is_pump_requested)
        if changed:
            logger.info(
                "Pump status for device %s is now %s",
                self.device_id,
                "watering" if self.state.is_watering else "idle",
            )
            self._emit(SessionEvent.PUMP_STATUS_UPDATED)

    def _record_error(self, exc: Exception) -> None:
        self.state.last_error = str(exc) or type(exc).__name__

    def _emit(self, event: SessionEvent) -> None:
        if self._on_change is not None:
            self._on_change(event)

    def get_service_status(self) -> dict[str, Any]:
        """Returns loop status for logs and diagnostics."""
        return {
            "is_running": self.is_running,
            "device_id": self.device_id,
            "telemetry_interval": self.telemetry.interval_s,
            "pump_status_interval": self.pump_status.interval_s,
            "pollers": {
                self.telemetry.name: self.telemetry.health.to_dict(),
                self.pump_status.name: self.pump_status.health.to_dict(),
            },
        }


__all__ = ["PeriodicPoller", "PollerHealth", "PollingService"]
