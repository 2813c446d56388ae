# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from taskdeck.core.ports import Coordinates
from taskdeck.tasks.task_models import Priority, Task
from taskdeck.weather.models import WeatherSnapshot

T0 = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


class RecordingStorage:
    """
    In-memory KeyValueStorage that records every write.

    `writes` holds (op, key) pairs so tests can assert "no persistence write".
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.writes: list[tuple[str, str]] = []

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append(("set", key))
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.writes.append(("remove", key))
        self.data.pop(key, None)

    def write_count(self, key: str | None = None) -> int:
        return sum(1 for _, k in self.writes if key is None or k == key)


class BrokenStorage(RecordingStorage):
    """Every read and remove raises, like an unavailable backend."""

    def get(self, key: str) -> str | None:
        raise OSError("storage unavailable")

    def remove(self, key: str) -> None:
        raise OSError("storage unavailable")


class FailingCredentialDirectory:
    """Credential backend that is down."""

    async def find_by_email(self, email: str):
        raise RuntimeError("backend down")

    async def find_by_email_and_password(self, email: str, password: str):
        raise RuntimeError("backend down")

    async def create(self, *, name: str, email: str, password: str):
        raise RuntimeError("backend down")

    async def update(self, user_id: str, **fields):
        raise RuntimeError("backend down")


@dataclass(slots=True)
class FakeLocationProvider:
    coords: Coordinates = field(default_factory=lambda: Coordinates(latitude=52.52, longitude=13.40))
    delay: float = 0.0
    error: Exception | None = None
    calls: int = 0

    async def current_position(self, *, timeout: float) -> Coordinates:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.coords


def make_snapshot(name: str = "Berlin", temp: float = 18.4, code: int = 500) -> WeatherSnapshot:
    return WeatherSnapshot(
        location_name=name,
        temperature=temp,
        humidity=60,
        condition_code=code,
        description="light rain",
        feels_like=17.9,
        condition="Rain",
        icon="10d",
    )


class FakeWeatherProvider:
    """
    Returns queued results in order; an Exception in the queue is raised.

    `gates` optionally holds one asyncio.Event per call so tests can control
    the order in which overlapping fetches settle.
    """

    def __init__(self, *results: WeatherSnapshot | Exception) -> None:
        self.results = list(results) or [make_snapshot()]
        self.calls: list[tuple[float, float]] = []
        self.gates: list[asyncio.Event] = []

    async def fetch_current(self, latitude: float, longitude: float) -> WeatherSnapshot:
        idx = len(self.calls)
        self.calls.append((latitude, longitude))
        if idx < len(self.gates):
            await self.gates[idx].wait()
        result = self.results[min(idx, len(self.results) - 1)]
        if isinstance(result, Exception):
            raise result
        return result


def make_task(
    task_id: str,
    text: str = "task",
    *,
    priority: Priority | str = Priority.MEDIUM,
    created_at: datetime = T0,
    completed: bool = False,
    favorite: bool = False,
    categories: list[str] | None = None,
    due_date: datetime | None = None,
) -> Task:
    return Task(
        id=task_id,
        text=text,
        priority=Priority(priority),
        created_at=created_at,
        completed=completed,
        favorite=favorite,
        categories=categories,
        due_date=due_date,
    )


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
