"""
Remote device-state store interface.

A client reads and writes one shared record per device id. Every call is
independent; the client keeps no session state beyond whatever its transport
pools. Failures are raised as :class:`RemoteStateError` subclasses and are
never swallowed here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Union

from plantbuddy.schemas.device import DeviceId, DeviceState, DeviceStateUpdate

UpdateFields = Union[DeviceStateUpdate, Mapping[str, Any]]


class RemoteStateClient(ABC):
    """Async access to the shared device-state record."""

    @abstractmethod
    async def fetch_state(self, device_id: DeviceId) -> DeviceState:
        """
        Return the latest stored snapshot for ``device_id``.

        Raises:
            NotFoundError: No record for this device id
            NetworkFailureError: Request not delivered or no response
            InvalidRecordError: Stored row could not be parsed
        """
        ...

    @abstractmethod
    async def update_state(self, device_id: DeviceId, fields: UpdateFields) -> None:
        """
        Write only the named fields; every other column is left untouched.

        Raises:
            NetworkFailureError: Request not delivered or no response
            ConflictError: Store rejected the write
            NotFoundError: No record for this device id
        """
        ...

    def close(self) -> None:
        """Release transport resources. Override if needed."""
