"""
Configuration for the Plant Buddy controller
============================================
Runtime settings for the remote state store, the polling loops and the
slider control, loaded from environment variables.
Sets up the logging configuration as well.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    # Remote state store (Supabase / PostgREST)
    supabase_url: str = field(default_factory=lambda: os.getenv("PLANTBUDDY_SUPABASE_URL", ""))
    supabase_key: str = field(default_factory=lambda: os.getenv("PLANTBUDDY_SUPABASE_KEY", ""))
    state_table: str = field(default_factory=lambda: os.getenv("PLANTBUDDY_STATE_TABLE", "sensor_data"))
    device_id: int = field(default_factory=lambda: _env_int("PLANTBUDDY_DEVICE_ID", 1))
    http_timeout_s: float = field(default_factory=lambda: _env_float("PLANTBUDDY_HTTP_TIMEOUT", 10.0))

    # Polling cadence. Pump status is checked more often than telemetry so that
    # "Watering..." clears promptly once the device finishes.
    telemetry_interval_s: float = field(default_factory=lambda: _env_float("PLANTBUDDY_TELEMETRY_INTERVAL", 10.0))
    pump_status_interval_s: float = field(
        default_factory=lambda: _env_float("PLANTBUDDY_PUMP_STATUS_INTERVAL", 3.0)
    )

    # Sensor / control calibration
    water_level_raw_max: int = field(default_factory=lambda: _env_int("PLANTBUDDY_WATER_LEVEL_RAW_MAX", 1023))
    slider_track_width: float = field(default_factory=lambda: _env_float("PLANTBUDDY_SLIDER_TRACK_WIDTH", 300.0))

    # Optional policy: mirror the light mode to the store
    persist_light_mode: bool = field(default_factory=lambda: _env_bool("PLANTBUDDY_PERSIST_LIGHT_MODE", False))

    DEBUG: bool = field(default_factory=lambda: _env_bool("PLANTBUDDY_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("PLANTBUDDY_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("PLANTBUDDY_LOG_FILE", "logs/plantbuddy.log"))

    @property
    def has_remote_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


# ==================== CONFIGURATION VALIDATION ====================


def validate_config(config: AppConfig) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: AppConfig instance

    Returns:
        List of warning messages (empty if all valid)
    """
    warnings = []

    if not config.has_remote_credentials:
        warnings.append(
            "Supabase credentials are not set (PLANTBUDDY_SUPABASE_URL / PLANTBUDDY_SUPABASE_KEY). "
            "Only the simulated store is available."
        )

    for name, interval in (
        ("telemetry_interval_s", config.telemetry_interval_s),
        ("pump_status_interval_s", config.pump_status_interval_s),
    ):
        if interval < 1:
            warnings.append(f"{name} ({interval}s) is very short and will hammer the remote store. Recommended: >= 1s")

    if config.pump_status_interval_s > config.telemetry_interval_s:
        warnings.append(
            f"Pump status interval ({config.pump_status_interval_s}s) is longer than telemetry interval "
            f"({config.telemetry_interval_s}s); watering confirmation will lag."
        )

    if config.water_level_raw_max <= 0:
        warnings.append(f"water_level_raw_max must be positive, got {config.water_level_raw_max}")

    if config.slider_track_width <= 0:
        warnings.append(f"slider_track_width must be positive, got {config.slider_track_width}")

    return warnings


def setup_logging(debug: bool = False, log_file: str | None = "logs/plantbuddy.log") -> None:
    """Setup logging configuration."""
    log_level = logging.DEBUG if debug else logging.INFO

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicate handlers when called more than once
    has_console = any(getattr(h, "name", "") == "plantbuddy_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "plantbuddy_file" for h in root.handlers)
    added_handler = False

    # Console handler (force UTF-8 to avoid UnicodeEncodeError on Windows terminals)
    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "plantbuddy_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    # File handler
    if log_file and not has_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "plantbuddy_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    # Ensure handler levels follow the desired log level
    for handler in root.handlers:
        if getattr(handler, "name", "") in {"plantbuddy_console", "plantbuddy_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    # One line per HTTP request every few seconds is too chatty
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    config = AppConfig()

    logger = logging.getLogger("config_loader")
    for warning in validate_config(config):
        logger.warning(warning)

    return config
