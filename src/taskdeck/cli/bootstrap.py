# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete collaborators into the stores and the stores into AppState,
- runs the explicit startup restore (tasks + persisted session).
"""

from __future__ import annotations

import logging

from ..auth.auth_store import AuthStore
from ..auth.credentials import InMemoryCredentialDirectory
from ..config import get_settings
from ..core.ports import CredentialDirectory, KeyValueStorage, LocationProvider, WeatherProvider
from ..core.state import AppState
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskStore
from ..weather.client import OpenWeatherClient, location_provider_from_settings
from ..weather.weather_store import WeatherStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    storage: KeyValueStorage | None = None,
    credentials: CredentialDirectory | None = None,
    location: LocationProvider | None = None,
    weather_provider: WeatherProvider | None = None,
) -> AppState:
    """
    Create AppState with empty/anonymous stores. Nothing is read from storage here.

    Collaborators are injectable for tests; defaults come from settings.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = SqliteKeyValueStore(settings.storage_db_path)

    if credentials is None:
        credentials = InMemoryCredentialDirectory(
            latency_seconds=getattr(settings, "credential_latency_seconds", 0.0)
        )
    if location is None:
        location = location_provider_from_settings(settings)
    if weather_provider is None:
        weather_provider = OpenWeatherClient.from_settings(settings)

    discard_stale = bool(getattr(settings, "discard_stale_results", False))

    return AppState(
        settings=settings,
        tasks=TaskStore(storage),
        auth=AuthStore(storage, credentials, discard_stale=discard_stale),
        weather=WeatherStore(
            location,
            weather_provider,
            geolocation_timeout=getattr(settings, "geolocation_timeout_seconds", 10.0),
            discard_stale=discard_stale,
        ),
    )


async def restore_state(state: AppState) -> None:
    """Run once at process start, before any front end touches the stores."""
    await state.restore()
    logger.info(
        "State restored: tasks=%d authenticated=%s",
        len(state.tasks),
        state.auth.is_authenticated,
    )
