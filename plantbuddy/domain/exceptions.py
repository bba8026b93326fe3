"""Centralized exception hierarchy for Plant Buddy.

All domain and remote-store exceptions inherit from :class:`PlantBuddyError`
so that callers can catch a single base class when they need a broad safety
net, yet still match on specific subclasses where narrower handling is
appropriate.

The polling loops and the actuator command guard catch
:class:`RemoteStateError` at their boundary; nothing in this hierarchy is
allowed to end a session.

Hierarchy
---------
::

    PlantBuddyError (base)
    ├── ConfigurationError       (missing / invalid config)
    └── RemoteStateError         (remote device-state store failure)
        ├── NetworkFailureError  (transient, request lost or no response)
        ├── NotFoundError        (device id absent from the store)
        ├── ConflictError        (write rejected by concurrent mutation)
        └── InvalidRecordError   (stored row could not be parsed)
"""

from __future__ import annotations


class PlantBuddyError(Exception):
    """Base exception for all Plant Buddy errors.

    Parameters
    ----------
    message:
        Human-readable description, logged by the boundary that catches it.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ConfigurationError(PlantBuddyError):
    """Missing or invalid application configuration."""


# ── Remote state store ───────────────────────────────────────────────


class RemoteStateError(PlantBuddyError):
    """Reading or writing the shared device-state record failed."""

    transient: bool = False


class NetworkFailureError(RemoteStateError):
    """Request was not delivered or no response arrived."""

    transient: bool = True


class NotFoundError(RemoteStateError):
    """No record exists for the requested device id."""


class ConflictError(RemoteStateError):
    """Write rejected because the record was mutated concurrently."""


class InvalidRecordError(RemoteStateError):
    """The stored record does not match the expected device-state shape."""
