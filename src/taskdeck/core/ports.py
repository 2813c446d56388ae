# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the stores.

The stores depend on Protocols instead of concrete implementations.
This keeps storage/credential/location/weather providers swappable and makes testing easier.
"""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float


class KeyValueStorage(Protocol):
    """
    Durable client-local storage keyed by string.

    Writes are synchronous; values are opaque strings (JSON in practice).
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class CredentialDirectory(Protocol):
    """
    Credential backend.

    Records are `auth.models.CredentialRecord` (kept as Any to avoid import coupling).
    """

    async def find_by_email(self, email: str) -> Any | None: ...
    async def find_by_email_and_password(self, email: str, password: str) -> Any | None: ...
    async def create(self, *, name: str, email: str, password: str) -> Any: ...
    async def update(self, user_id: str, **fields: Any) -> Any | None: ...


class LocationProvider(Protocol):
    """Single-shot position lookup. `timeout` is advisory; the caller enforces it too."""

    async def current_position(self, *, timeout: float) -> Coordinates: ...


class WeatherProvider(Protocol):
    """One request per call; raises `weather.models.WeatherUnavailable` on non-2xx."""

    async def fetch_current(self, latitude: float, longitude: float) -> Any: ...
