import logging

import pytest

from plantbuddy.config import AppConfig, load_config, setup_logging, validate_config


@pytest.fixture()
def clean_env(monkeypatch):
    for name in (
        "PLANTBUDDY_SUPABASE_URL",
        "PLANTBUDDY_SUPABASE_KEY",
        "PLANTBUDDY_DEVICE_ID",
        "PLANTBUDDY_TELEMETRY_INTERVAL",
        "PLANTBUDDY_PUMP_STATUS_INTERVAL",
        "PLANTBUDDY_PERSIST_LIGHT_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture()
def restore_root_handlers():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_defaults(clean_env):
    config = AppConfig()

    assert config.state_table == "sensor_data"
    assert config.device_id == 1
    assert config.telemetry_interval_s == 10.0
    assert config.pump_status_interval_s == 3.0
    assert config.water_level_raw_max == 1023
    assert config.slider_track_width == 300.0
    assert config.persist_light_mode is False
    assert config.has_remote_credentials is False


def test_environment_overrides(clean_env):
    clean_env.setenv("PLANTBUDDY_SUPABASE_URL", "https://x.supabase.co")
    clean_env.setenv("PLANTBUDDY_SUPABASE_KEY", "anon")
    clean_env.setenv("PLANTBUDDY_DEVICE_ID", "4")
    clean_env.setenv("PLANTBUDDY_TELEMETRY_INTERVAL", "15")
    clean_env.setenv("PLANTBUDDY_PERSIST_LIGHT_MODE", "yes")

    config = AppConfig()

    assert config.has_remote_credentials is True
    assert config.device_id == 4
    assert config.telemetry_interval_s == 15.0
    assert config.persist_light_mode is True


def test_invalid_integer_is_reported(clean_env):
    clean_env.setenv("PLANTBUDDY_DEVICE_ID", "first")
    with pytest.raises(ValueError, match="PLANTBUDDY_DEVICE_ID"):
        AppConfig()


def test_validate_config_flags_problems():
    config = AppConfig(
        supabase_url="",
        supabase_key="",
        telemetry_interval_s=2.0,
        pump_status_interval_s=0.5,
        water_level_raw_max=0,
    )

    warnings = validate_config(config)

    assert any("credentials" in w for w in warnings)
    assert any("pump_status_interval_s" in w for w in warnings)
    assert any("water_level_raw_max" in w for w in warnings)


def test_validate_config_flags_slow_pump_interval():
    config = AppConfig(supabase_url="u", supabase_key="k", telemetry_interval_s=5.0, pump_status_interval_s=8.0)
    warnings = validate_config(config)
    assert len(warnings) == 1
    assert "lag" in warnings[0]


def test_valid_config_has_no_warnings():
    config = AppConfig(supabase_url="u", supabase_key="k", telemetry_interval_s=10.0, pump_status_interval_s=3.0)
    assert validate_config(config) == []


def test_load_config_logs_warnings(clean_env, caplog):
    with caplog.at_level(logging.WARNING, logger="config_loader"):
        load_config()
    assert any("credentials" in r.getMessage() for r in caplog.records)


def test_setup_logging_is_idempotent(tmp_path, restore_root_handlers):
    log_file = tmp_path / "logs" / "plantbuddy.log"

    setup_logging(debug=True, log_file=str(log_file))
    setup_logging(debug=True, log_file=str(log_file))

    names = [h.name for h in logging.getLogger().handlers]
    assert names.count("plantbuddy_console") == 1
    assert names.count("plantbuddy_file") == 1
    assert log_file.parent.is_dir()
    assert logging.getLogger().level == logging.DEBUG
