# src/taskdeck/weather/weather_store.py

from __future__ import annotations

import asyncio
import logging

from ..core.lifecycle import AsyncStateContainer, OperationOutcome, OperationRejected
from ..core.ports import LocationProvider, WeatherProvider
from .models import LocationUnavailable, WeatherSnapshot, WeatherState, WeatherUnavailable

logger = logging.getLogger(__name__)

DEFAULT_GEOLOCATION_TIMEOUT_SECONDS = 10.0


class WeatherStore(AsyncStateContainer):
    """
    Latest weather snapshot for the current position. Not persisted.

    A failed fetch keeps the previous snapshot (stale data stays visible next to the error).
    """

    def __init__(
        self,
        location: LocationProvider,
        provider: WeatherProvider,
        *,
        geolocation_timeout: float = DEFAULT_GEOLOCATION_TIMEOUT_SECONDS,
        discard_stale: bool = False,
    ) -> None:
        super().__init__("weather", discard_stale=discard_stale)
        self._location = location
        self._provider = provider
        self._geolocation_timeout = geolocation_timeout
        self.data: WeatherSnapshot | None = None

    def snapshot(self) -> WeatherState:
        return WeatherState(data=self.data, loading=self.loading, error=self.error)

    @property
    def phase(self) -> str:
        return self.snapshot().phase

    async def fetch_weather(self) -> OperationOutcome:
        async def work() -> WeatherSnapshot:
            try:
                coords = await asyncio.wait_for(
                    self._location.current_position(timeout=self._geolocation_timeout),
                    timeout=self._geolocation_timeout,
                )
            except TimeoutError:
                raise OperationRejected("Location request timed out") from None
            except LocationUnavailable as exc:
                raise OperationRejected(str(exc)) from exc

            try:
                return await self._provider.fetch_current(coords.latitude, coords.longitude)
            except WeatherUnavailable as exc:
                raise OperationRejected(str(exc)) from exc

        def on_fulfilled(snapshot: WeatherSnapshot) -> None:
            self.data = snapshot
            self.loading = False
            self.error = None

        return await self._run(
            "fetch_weather",
            work,
            on_fulfilled=on_fulfilled,
            fallback_error="Failed to fetch weather data",
        )
