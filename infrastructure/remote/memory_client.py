"""
In-memory device-state store.

Backs the headless simulator (``plantbuddy-session --simulate``) and the test
suite. Records are kept column-keyed exactly as the remote table stores them,
so partial updates behave like the real store: named columns change, the rest
are left alone.

Extra controls for simulation:
    - ``set_fields``: mutate a record from "outside", e.g. the device's own
      button setting the pump flag or the controller clearing it
    - ``fail_next_fetch`` / ``fail_next_update``: inject remote errors
    - ``hold`` / ``release``: keep calls in flight until released
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Mapping

from pydantic import ValidationError

from infrastructure.remote.base import RemoteStateClient, UpdateFields
from plantbuddy.domain.exceptions import InvalidRecordError, NetworkFailureError, NotFoundError, RemoteStateError
from plantbuddy.schemas.device import DeviceId, DeviceState, DeviceStateUpdate

logger = logging.getLogger(__name__)

DEFAULT_RECORD: dict[str, Any] = {
    "water_level": 0,
    "light_level": 0,
    "is_moist": True,
    "is_button_pump": False,
}


class InMemoryStateClient(RemoteStateClient):
    """Dict-backed stand-in for the remote device-state table."""

    def __init__(self, records: Mapping[DeviceId, Mapping[str, Any]] | None = None, latency_s: float = 0.0):
        self._records: dict[DeviceId, dict[str, Any]] = {}
        for device_id, record in (records or {}).items():
            self.seed(device_id, **record)
        self.latency_s = latency_s

        self.fetch_calls = 0
        self.update_calls = 0
        self.updates: list[tuple[DeviceId, dict[str, Any]]] = []

        self._fetch_failures: deque[RemoteStateError] = deque()
        self._update_failures: deque[RemoteStateError] = deque()
        self._gate: asyncio.Event | None = None

    # -------------------------------------------------------------------------
    # Record management
    # -------------------------------------------------------------------------

    def seed(self, device_id: DeviceId, **columns: Any) -> None:
        """Create (or replace) a record, filling unspecified columns with defaults."""
        self._records[device_id] = {**DEFAULT_RECORD, **columns}

    def set_fields(self, device_id: DeviceId, **columns: Any) -> None:
        """Mutate a record as an external actor would."""
        if device_id not in self._records:
            raise KeyError(device_id)
        self._records[device_id].update(columns)

    def get_record(self, device_id: DeviceId) -> dict[str, Any]:
        return dict(self._records[device_id])

    def remove(self, device_id: DeviceId) -> None:
        self._records.pop(device_id, None)

    # -------------------------------------------------------------------------
    # Fault injection
    # -------------------------------------------------------------------------

    def fail_next_fetch(self, error: RemoteStateError | None = None, times: int = 1) -> None:
        for _ in range(times):
            self._fetch_failures.append(error or NetworkFailureError("Simulated fetch failure"))

    def fail_next_update(self, error: RemoteStateError | None = None, times: int = 1) -> None:
        for _ in range(times):
            self._update_failures.append(error or NetworkFailureError("Simulated update failure"))

    def hold(self) -> None:
        """Keep every subsequent call suspended until :meth:`release`."""
        if self._gate is None:
            self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    async def _io(self) -> None:
        """Model the suspension point of a real network round-trip."""
        await asyncio.sleep(self.latency_s)
        gate = self._gate
        if gate is not None:
            await gate.wait()

    # -------------------------------------------------------------------------
    # RemoteStateClient Implementation
    # -------------------------------------------------------------------------

    async def fetch_state(self, device_id: DeviceId) -> DeviceState:
        self.fetch_calls += 1
        failure = self._fetch_failures.popleft() if self._fetch_failures else None

        await self._io()

        if failure is not None:
            raise failure
        record = self._records.get(device_id)
        if record is None:
            raise NotFoundError(f"No state record for device {device_id}", detail={"device_id": device_id})

        try:
            return DeviceState.model_validate({**record, "id": device_id})
        except ValidationError as exc:
            raise InvalidRecordError(f"Malformed state record for device {device_id}") from exc

    async def update_state(self, device_id: DeviceId, fields: UpdateFields) -> None:
        payload = DeviceStateUpdate.coerce(fields).to_payload()
        self.update_calls += 1
        self.updates.append((device_id, payload))
        failure = self._update_failures.popleft() if self._update_failures else None

        await self._io()

        if failure is not None:
            raise failure
        record = self._records.get(device_id)
        if record is None:
            raise NotFoundError(f"No state record for device {device_id}", detail={"device_id": device_id})

        record.update(payload)
        logger.debug("In-memory update for device %s: %s", device_id, payload)
