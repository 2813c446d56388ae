# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.auth.credentials import InMemoryCredentialDirectory
from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.core.state import AppState

from .fakes import FakeLocationProvider, FakeWeatherProvider, RecordingStorage


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        data_dir=tmp_path,
        storage_db_path=tmp_path / "storage.sqlite3",
        openweather_api_key=None,
        openweather_base_url="https://weather.invalid/data/2.5",
        weather_units="metric",
        weather_http_timeout_seconds=0.0,
        auto_fetch_weather=False,
        geolocation_timeout_seconds=0.5,
        latitude=52.52,
        longitude=13.40,
        geoip_url="http://geo.invalid/json",
        credential_latency_seconds=0.0,
        discard_stale_results=False,
    )


@pytest.fixture()
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture()
def credentials() -> InMemoryCredentialDirectory:
    return InMemoryCredentialDirectory(latency_seconds=0.0)


@pytest.fixture()
def weather_provider() -> FakeWeatherProvider:
    return FakeWeatherProvider()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    storage: RecordingStorage,
    credentials: InMemoryCredentialDirectory,
    weather_provider: FakeWeatherProvider,
) -> AppState:
    """AppState wired with deterministic fakes (no SQLite, no network)."""
    return create_initial_state(
        settings=settings,
        storage=storage,
        credentials=credentials,
        location=FakeLocationProvider(),
        weather_provider=weather_provider,
    )
