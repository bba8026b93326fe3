from enum import Enum


class SessionEvent(str, Enum):
    """Reasons a session notifies its render listeners."""

    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
    TELEMETRY_UPDATED = "telemetry_updated"
    PUMP_STATUS_UPDATED = "pump_status_updated"
    PUMP_REQUESTED = "pump_requested"
    PUMP_REQUEST_FAILED = "pump_request_failed"
    LIGHT_MODE_CHANGED = "light_mode_changed"
    LIGHT_INTENSITY_CHANGED = "light_intensity_changed"


class PollerName(str, Enum):
    TELEMETRY = "telemetry"
    PUMP_STATUS = "pump_status"
