# tests/test_weather_client.py

from __future__ import annotations

import httpx
import pytest

from taskdeck.weather.client import (
    IpLocationProvider,
    OpenWeatherClient,
    StaticLocationProvider,
    location_provider_from_settings,
)
from taskdeck.weather.models import LocationUnavailable, WeatherUnavailable

OPENWEATHER_DOC = {
    "name": "Berlin",
    "main": {"temp": 21.6, "humidity": 48, "feels_like": 21.1},
    "weather": [{"id": 802, "main": "Clouds", "description": "scattered clouds", "icon": "03d"}],
}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_current_sends_query_and_parses() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=OPENWEATHER_DOC)

    async with _client(handler) as http:
        client = OpenWeatherClient(api_key="k123", base_url="https://owm.test/data/2.5", http_client=http)
        snap = await client.fetch_current(52.5, 13.4)

    assert snap.location_name == "Berlin"
    assert snap.temperature == 21.6
    assert snap.humidity == 48
    assert snap.condition_code == 802
    assert snap.description == "scattered clouds"
    assert snap.feels_like == 21.1

    params = seen[0].url.params
    assert seen[0].url.path == "/data/2.5/weather"
    assert params["lat"] == "52.5"
    assert params["lon"] == "13.4"
    assert params["units"] == "metric"
    assert params["appid"] == "k123"


@pytest.mark.asyncio
async def test_non_2xx_is_unavailable() -> None:
    async with _client(lambda r: httpx.Response(401, json={"message": "bad key"})) as http:
        client = OpenWeatherClient(api_key="k", http_client=http)
        with pytest.raises(WeatherUnavailable, match="Weather data not available"):
            await client.fetch_current(0, 0)


@pytest.mark.asyncio
async def test_malformed_document_is_unavailable() -> None:
    async with _client(lambda r: httpx.Response(200, json={"name": "x", "weather": []})) as http:
        client = OpenWeatherClient(api_key="k", http_client=http)
        with pytest.raises(WeatherUnavailable):
            await client.fetch_current(0, 0)


@pytest.mark.asyncio
async def test_transport_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as http:
        client = OpenWeatherClient(api_key="k", http_client=http)
        with pytest.raises(WeatherUnavailable, match="Failed to fetch weather data"):
            await client.fetch_current(0, 0)


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_request() -> None:
    calls: list[httpx.Request] = []

    async with _client(lambda r: calls.append(r) or httpx.Response(200, json=OPENWEATHER_DOC)) as http:
        client = OpenWeatherClient(api_key="  ", http_client=http)
        with pytest.raises(WeatherUnavailable, match="not configured"):
            await client.fetch_current(0, 0)
    assert calls == []


@pytest.mark.asyncio
async def test_ip_location_provider() -> None:
    async with _client(lambda r: httpx.Response(200, json={"status": "success", "lat": 48.1, "lon": 11.6})) as http:
        coords = await IpLocationProvider("http://geo.test/json", http_client=http).current_position(timeout=1)
    assert (coords.latitude, coords.longitude) == (48.1, 11.6)


@pytest.mark.asyncio
async def test_ip_location_provider_failures() -> None:
    async with _client(lambda r: httpx.Response(503)) as http:
        with pytest.raises(LocationUnavailable):
            await IpLocationProvider("http://geo.test/json", http_client=http).current_position(timeout=1)

    async with _client(lambda r: httpx.Response(200, json={"status": "fail"})) as http:
        with pytest.raises(LocationUnavailable):
            await IpLocationProvider("http://geo.test/json", http_client=http).current_position(timeout=1)


def test_location_provider_selection(settings) -> None:
    assert isinstance(location_provider_from_settings(settings), StaticLocationProvider)
    settings.latitude = None
    assert isinstance(location_provider_from_settings(settings), IpLocationProvider)
