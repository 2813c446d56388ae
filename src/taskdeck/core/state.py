# src/taskdeck/core/state.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field

from ..auth.auth_store import AuthStore
from ..auth.models import AuthState
from ..tasks.task_models import TasksState
from ..tasks.task_store import TaskStore
from ..weather.models import WeatherState
from ..weather.weather_store import WeatherStore

logger = logging.getLogger(__name__)

RootListener = Callable[["RootState"], None]


@dataclass(frozen=True, slots=True)
class RootState:
    """One addressable state tree: auth / tasks / weather."""

    auth: AuthState
    tasks: TasksState
    weather: WeatherState


@dataclass
class AppState:
    """
    Composition of the three stores.

    Stores are independent; AppState only republishes their changes as a
    RootState to its own subscribers.
    """

    settings: object

    tasks: TaskStore
    auth: AuthStore
    weather: WeatherStore

    _listeners: list[RootListener] = field(default_factory=list, repr=False)
    background_tasks: set[asyncio.Task] = field(default_factory=set, repr=False)

    def __post_init__(self) -> None:
        for store in (self.tasks, self.auth, self.weather):
            store.subscribe(self._republish)

    def get_state(self) -> RootState:
        return RootState(
            auth=self.auth.snapshot(),
            tasks=self.tasks.snapshot(),
            weather=self.weather.snapshot(),
        )

    def subscribe(self, listener: RootListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _republish(self) -> None:
        if not self._listeners:
            return
        root = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(root)
            except Exception:
                logger.exception("Root state listener failed.")

    def spawn(self, coro: Coroutine, *, name: str) -> asyncio.Task:
        """Start a background task and hold a reference until it finishes."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
        return task

    def refresh_weather_in_background(self) -> asyncio.Task | None:
        """One weather fetch per sign-in; skipped when disabled, signed out or already loading."""
        if not getattr(self.settings, "auto_fetch_weather", True):
            return None
        if not self.auth.is_authenticated or self.weather.loading:
            return None
        return self.spawn(self.weather.fetch_weather(), name="weather-refresh")

    async def cancel_background(self) -> None:
        tasks = list(self.background_tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("Cancelled %d background task(s).", len(tasks))

    async def restore(self) -> None:
        """Startup restore: task collection first, then the persisted session."""
        self.tasks.restore()
        await self.auth.check_auth()
