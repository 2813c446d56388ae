# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the weather key is optional).
- Everything local lives under a gitignored data dir.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "TASKDECK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    storage_db_path: Path

    # ---- Weather / OpenWeatherMap ----
    openweather_api_key: Optional[str]
    openweather_base_url: str
    weather_units: str
    weather_http_timeout_seconds: float  # 0 -> no timeout
    auto_fetch_weather: bool

    # ---- Location ----
    geolocation_timeout_seconds: float
    latitude: Optional[float]
    longitude: Optional[float]
    geoip_url: str

    # ---- Demo credential backend ----
    credential_latency_seconds: float

    # ---- Async operations ----
    discard_stale_results: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck") or "taskdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))
        storage_db_path = _env_path(_k("STORAGE_DB_PATH"), data_dir / "storage.sqlite3")

        openweather_api_key = _first_env(_k("OPENWEATHER_API_KEY"), "OPENWEATHER_API_KEY", default=None)
        openweather_base_url = _env(
            _k("OPENWEATHER_BASE_URL"), "https://api.openweathermap.org/data/2.5"
        ).rstrip("/")
        weather_units = _env(_k("WEATHER_UNITS"), "metric")
        weather_http_timeout_seconds = max(0.0, _env_float(_k("WEATHER_HTTP_TIMEOUT_SECONDS"), 0.0))
        auto_fetch_weather = _env_bool(_k("AUTO_FETCH_WEATHER"), True)

        geolocation_timeout_seconds = _env_float(_k("GEOLOCATION_TIMEOUT_SECONDS"), 10.0)
        if geolocation_timeout_seconds <= 0:
            geolocation_timeout_seconds = 10.0
        latitude = _env_optional_float(_k("LATITUDE"))
        longitude = _env_optional_float(_k("LONGITUDE"))
        geoip_url = _env(_k("GEOIP_URL"), "http://ip-api.com/json")

        credential_latency_seconds = max(0.0, _env_float(_k("CREDENTIAL_LATENCY_SECONDS"), 1.0))

        discard_stale_results = _env_bool(_k("DISCARD_STALE_RESULTS"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            storage_db_path=storage_db_path,
            openweather_api_key=openweather_api_key,
            openweather_base_url=openweather_base_url,
            weather_units=weather_units,
            weather_http_timeout_seconds=weather_http_timeout_seconds,
            auto_fetch_weather=auto_fetch_weather,
            geolocation_timeout_seconds=geolocation_timeout_seconds,
            latitude=latitude,
            longitude=longitude,
            geoip_url=geoip_url,
            credential_latency_seconds=credential_latency_seconds,
            discard_stale_results=discard_stale_results,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
