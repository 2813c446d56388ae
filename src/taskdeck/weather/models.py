# src/taskdeck/weather/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class WeatherUnavailable(RuntimeError):
    """Weather provider failed (non-2xx, unreadable payload, missing key)."""


class LocationUnavailable(RuntimeError):
    """Position could not be acquired."""


class ConditionKind(StrEnum):
    THUNDERSTORM = "thunderstorm"
    RAIN = "rain"
    SNOW = "snow"
    CLEAR = "clear"
    CLOUDS = "clouds"

    @classmethod
    def from_code(cls, code: int) -> ConditionKind:
        """OpenWeatherMap condition id ranges."""
        if 200 <= code < 300:
            return cls.THUNDERSTORM
        if 300 <= code < 400 or 500 <= code < 600:
            return cls.RAIN
        if 600 <= code < 700:
            return cls.SNOW
        if code == 800:
            return cls.CLEAR
        return cls.CLOUDS


@dataclass(frozen=True, slots=True)
class WeatherSnapshot:
    location_name: str
    temperature: float
    humidity: float
    condition_code: int
    description: str
    feels_like: float | None = None
    condition: str = ""
    icon: str = ""

    @property
    def condition_kind(self) -> ConditionKind:
        return ConditionKind.from_code(self.condition_code)

    @property
    def rounded_temperature(self) -> int:
        return round(self.temperature)

    @classmethod
    def from_openweather(cls, data: dict[str, Any]) -> WeatherSnapshot:
        """Parse a /data/2.5/weather document. Raises WeatherUnavailable when the shape is wrong."""
        try:
            main = data["main"]
            primary = data["weather"][0]
            feels = main.get("feels_like")
            return cls(
                location_name=str(data.get("name") or ""),
                temperature=float(main["temp"]),
                humidity=float(main["humidity"]),
                condition_code=int(primary["id"]),
                description=str(primary.get("description") or ""),
                feels_like=float(feels) if feels is not None else None,
                condition=str(primary.get("main") or ""),
                icon=str(primary.get("icon") or ""),
            )
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise WeatherUnavailable("Weather data not available") from exc


@dataclass(frozen=True, slots=True)
class WeatherState:
    data: WeatherSnapshot | None = None
    loading: bool = False
    error: str | None = None

    @property
    def phase(self) -> str:
        if self.loading:
            return "loading"
        if self.error:
            return "error"
        if self.data is not None:
            return "ready"
        return "idle"
