# src/taskdeck/weather/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.ports import Coordinates
from .models import LocationUnavailable, WeatherSnapshot, WeatherUnavailable

logger = logging.getLogger(__name__)


def _make_timeout(seconds: float | None) -> httpx.Timeout:
    """0/None -> no timeout at all (the weather request is single-shot and unbounded)."""
    if not seconds:
        return httpx.Timeout(None)
    return httpx.Timeout(seconds, connect=min(seconds, 5.0))


class OpenWeatherClient:
    """
    OpenWeatherMap current-weather client.

    One GET per call, no retries. Pass `http_client` to reuse a connection pool
    (or a mock transport in tests); otherwise a short-lived client is created per call.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        units: str = "metric",
        timeout_seconds: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = (api_key or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._units = units
        self._timeout = _make_timeout(timeout_seconds)
        self._http = http_client

    @classmethod
    def from_settings(cls, settings) -> OpenWeatherClient:
        return cls(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            units=settings.weather_units,
            timeout_seconds=settings.weather_http_timeout_seconds,
        )

    async def _get(self, url: str, params: dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return await self._http.get(url, params=params)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params)

    async def fetch_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        if self._api_key is None:
            raise WeatherUnavailable("Weather API key is not configured")

        params = {
            "lat": latitude,
            "lon": longitude,
            "units": self._units,
            "appid": self._api_key,
        }
        try:
            resp = await self._get(f"{self._base_url}/weather", params)
        except httpx.HTTPError as exc:
            logger.info("Weather request failed: %s", exc.__class__.__name__)
            raise WeatherUnavailable("Failed to fetch weather data") from exc

        if not resp.is_success:
            logger.info("Weather provider returned status=%s", resp.status_code)
            raise WeatherUnavailable("Weather data not available")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise WeatherUnavailable("Weather data not available") from exc
        if not isinstance(payload, dict):
            raise WeatherUnavailable("Weather data not available")

        snapshot = WeatherSnapshot.from_openweather(payload)
        logger.debug(
            "Weather fetched location=%s temp=%s code=%s",
            snapshot.location_name,
            snapshot.temperature,
            snapshot.condition_code,
        )
        return snapshot


class StaticLocationProvider:
    """Fixed coordinates (from settings)."""

    def __init__(self, latitude: float, longitude: float) -> None:
        self._coords = Coordinates(latitude=float(latitude), longitude=float(longitude))

    async def current_position(self, *, timeout: float) -> Coordinates:
        return self._coords


class IpLocationProvider:
    """
    Approximate position from an IP geolocation endpoint.

    Accepts both {"lat", "lon"} and {"latitude", "longitude"} payloads.
    """

    def __init__(self, url: str = "http://ip-api.com/json", *, http_client: httpx.AsyncClient | None = None) -> None:
        self._url = url
        self._http = http_client

    async def _get(self, timeout: float) -> httpx.Response:
        if self._http is not None:
            return await self._http.get(self._url, timeout=timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.get(self._url)

    async def current_position(self, *, timeout: float) -> Coordinates:
        try:
            resp = await self._get(timeout)
        except httpx.TimeoutException as exc:
            raise LocationUnavailable("Location request timed out") from exc
        except httpx.HTTPError as exc:
            raise LocationUnavailable("Location unavailable") from exc

        if not resp.is_success:
            raise LocationUnavailable("Location unavailable")

        try:
            data = resp.json()
            lat = data.get("lat", data.get("latitude"))
            lon = data.get("lon", data.get("longitude"))
            return Coordinates(latitude=float(lat), longitude=float(lon))
        except (AttributeError, TypeError, ValueError) as exc:
            raise LocationUnavailable("Location unavailable") from exc


def location_provider_from_settings(settings) -> StaticLocationProvider | IpLocationProvider:
    lat = getattr(settings, "latitude", None)
    lon = getattr(settings, "longitude", None)
    if lat is not None and lon is not None:
        return StaticLocationProvider(lat, lon)
    return IpLocationProvider(getattr(settings, "geoip_url", "http://ip-api.com/json"))
