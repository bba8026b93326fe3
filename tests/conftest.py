"""
Shared test fixtures for the Plant Buddy test suite.

Provides:
- In-memory device-state store seeded with one device
- AppConfig with fast polling intervals and no remote credentials
- SessionController wired to the in-memory store

Usage:
    def test_example(session, store):
        asyncio.run(session.polling.tick_telemetry())
        assert session.state.water_level_percent == 75
"""

from __future__ import annotations

import logging

import pytest

from infrastructure.remote.memory_client import InMemoryStateClient
from plantbuddy.config import AppConfig
from plantbuddy.services.session_controller import SessionController

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("plantbuddy").setLevel(logging.WARNING)

DEVICE_ID = 1


@pytest.fixture()
def device_id():
    return DEVICE_ID


@pytest.fixture()
def store():
    """In-memory store seeded with a healthy, idle device."""
    client = InMemoryStateClient()
    client.seed(DEVICE_ID, water_level=767, light_level=65, is_moist=True, is_button_pump=False)
    return client


@pytest.fixture()
def config():
    """Fast intervals so loop tests finish in well under a second."""
    return AppConfig(
        supabase_url="",
        supabase_key="",
        device_id=DEVICE_ID,
        telemetry_interval_s=0.05,
        pump_status_interval_s=0.02,
        water_level_raw_max=1023,
        slider_track_width=300.0,
        persist_light_mode=False,
    )


@pytest.fixture()
def session(store, config):
    """SessionController over the in-memory store (not started)."""
    return SessionController(store, config)


@pytest.fixture()
def recorder():
    """Listener that records (event, snapshot) pairs."""

    class Recorder:
        def __init__(self):
            self.calls = []

        def __call__(self, event, snapshot):
            self.calls.append((event, snapshot))

        @property
        def events(self):
            return [event for event, _ in self.calls]

    return Recorder()
