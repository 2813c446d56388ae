# src/taskdeck/core/lifecycle.py

from __future__ import annotations

"""
Async operation lifecycle shared by the auth and weather stores.

Every operation that waits on a collaborator runs in three phases:

    pending   -> loading=True, error=None (unless the operation opts out)
    fulfilled -> operation-specific success effects, loading=False
    rejected  -> loading=False, error=<user-facing message> (overridable)

Fulfilled handlers run only for results that are applied, so side effects that
must not outlive a discarded result (persisting a session) belong there.
Work functions signal an expected failure by raising `OperationRejected(message)`.
Any other exception is logged and mapped to the operation's fallback message.

Overlapping calls are not serialized. By default the last call to settle wins.
With `discard_stale=True` every call gets a generation number and a settlement
whose generation is no longer the newest is dropped without touching state.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[], None]


class OperationStatus(StrEnum):
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class OperationRejected(Exception):
    """Expected failure carrying a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True, slots=True)
class OperationOutcome:
    name: str
    status: OperationStatus
    value: Any = None
    error: str | None = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.FULFILLED


class StateContainer:
    """Subscriber bookkeeping for stores."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Listener failed for store=%s", self.name)


class AsyncStateContainer(StateContainer):
    """A store with `loading`/`error` fields driven by `_run`."""

    def __init__(self, name: str, *, discard_stale: bool = False) -> None:
        super().__init__(name)
        self.loading = False
        self.error: str | None = None
        self._discard_stale = discard_stale
        self._generation = 0

    def _set_pending(self) -> None:
        self.loading = True
        self.error = None

    def _set_rejected(self, message: str) -> None:
        self.loading = False
        self.error = message

    async def _run(
        self,
        op_name: str,
        work: Callable[[], Awaitable[T]],
        *,
        on_fulfilled: Callable[[T], None],
        fallback_error: str,
        on_rejected: Callable[[str], None] | None = None,
        mark_pending: bool = True,
    ) -> OperationOutcome:
        name = f"{self.name}/{op_name}"

        self._generation += 1
        generation = self._generation

        if mark_pending:
            self._set_pending()
            self._notify()
        logger.debug("%s pending generation=%s", name, generation)

        value: Any = None
        message: str | None = None
        try:
            value = await work()
        except OperationRejected as exc:
            message = exc.message or fallback_error
        except Exception:
            logger.exception("%s failed unexpectedly", name)
            message = fallback_error

        stale = generation != self._generation
        status = OperationStatus.FULFILLED if message is None else OperationStatus.REJECTED

        if stale and self._discard_stale:
            logger.info(
                "%s %s discarded (generation=%s, newest=%s)",
                name,
                status.value,
                generation,
                self._generation,
            )
            return OperationOutcome(name=name, status=status, value=value, error=message, stale=True)

        if message is None:
            try:
                on_fulfilled(value)
                logger.debug("%s fulfilled", name)
            except Exception:
                # The fulfilled handler commits (e.g. persists) before it mutates state.
                logger.exception("%s failed while committing its result", name)
                message = fallback_error
                status = OperationStatus.REJECTED

        if message is not None:
            if on_rejected is not None:
                on_rejected(message)
            else:
                self._set_rejected(message)
            logger.info("%s rejected: %s", name, message)

        self._notify()
        return OperationOutcome(name=name, status=status, value=value, error=message, stale=stale)
