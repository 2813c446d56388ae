# src/taskdeck/tasks/task_views.py

"""Derived views over the task collection. Pure functions, no I/O, never mutate."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from .task_models import Priority, Task

DEFAULT_CATEGORIES = ("personal", "work", "shopping", "health")


class TaskScope(StrEnum):
    ALL = "all"
    TODAY = "today"
    UPCOMING = "upcoming"
    FAVORITES = "favorites"


class CompletionFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class TaskStats:
    total: int
    pending: int
    completed: int
    high_priority: int
    high_priority_open: int
    today: int
    today_completed: int
    due_today: int
    favorites: int
    completion_rate: float

    @property
    def completion_percent(self) -> int:
        return round(self.completion_rate * 100)


@dataclass(frozen=True, slots=True)
class TaskView:
    tasks: tuple[Task, ...]
    stats: TaskStats


def _local_date(dt: datetime) -> date:
    return dt.astimezone().date()


def filter_by_scope(tasks: Iterable[Task], scope: TaskScope, today: date) -> list[Task]:
    """Scope is keyed on the task's creation date, not its due date."""
    if scope is TaskScope.TODAY:
        return [t for t in tasks if _local_date(t.created_at) == today]
    if scope is TaskScope.UPCOMING:
        return [t for t in tasks if _local_date(t.created_at) > today]
    if scope is TaskScope.FAVORITES:
        return [t for t in tasks if t.favorite]
    return list(tasks)


def filter_by_completion(tasks: Iterable[Task], completion: CompletionFilter) -> list[Task]:
    if completion is CompletionFilter.ACTIVE:
        return [t for t in tasks if not t.completed]
    if completion is CompletionFilter.COMPLETED:
        return [t for t in tasks if t.completed]
    return list(tasks)


def matches_query(task: Task, query: str) -> bool:
    """Case-insensitive substring over text, priority and categories."""
    q = query.lower()
    if q in task.text.lower() or q in task.priority.value.lower():
        return True
    return any(q in c.lower() for c in task.categories or ())


def filter_by_query(tasks: Iterable[Task], query: str) -> list[Task]:
    if not query:
        return list(tasks)
    return [t for t in tasks if matches_query(t, query)]


def sort_for_display(tasks: Iterable[Task]) -> list[Task]:
    """
    Priority rank ascending (high first), then newest first.

    `sorted` is stable, so equal (priority, created_at) pairs keep collection order.
    """
    return sorted(tasks, key=lambda t: (t.priority.rank, -t.created_at.timestamp()))


def select_tasks(
    tasks: Sequence[Task],
    *,
    scope: TaskScope | str = TaskScope.ALL,
    completion: CompletionFilter | str = CompletionFilter.ALL,
    query: str = "",
    today: date | None = None,
) -> list[Task]:
    """scope -> completion -> query -> sort."""
    today = today or date.today()
    result = filter_by_scope(tasks, TaskScope(scope), today)
    result = filter_by_completion(result, CompletionFilter(completion))
    result = filter_by_query(result, query)
    return sort_for_display(result)


def compute_stats(tasks: Sequence[Task], *, today: date | None = None) -> TaskStats:
    """Aggregates over the full collection, independent of any view filter."""
    today = today or date.today()

    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    high = [t for t in tasks if t.priority is Priority.HIGH]
    todays = [t for t in tasks if _local_date(t.created_at) == today]

    return TaskStats(
        total=total,
        pending=total - completed,
        completed=completed,
        high_priority=len(high),
        high_priority_open=sum(1 for t in high if not t.completed),
        today=len(todays),
        today_completed=sum(1 for t in todays if t.completed),
        due_today=sum(1 for t in tasks if t.due_date is not None and _local_date(t.due_date) == today),
        favorites=sum(1 for t in tasks if t.favorite),
        completion_rate=(completed / total) if total else 0.0,
    )


def category_counts(
    tasks: Iterable[Task], categories: Iterable[str] = DEFAULT_CATEGORIES
) -> dict[str, int]:
    counts = {c: 0 for c in categories}
    for t in tasks:
        for c in set(t.categories or ()):
            if c in counts:
                counts[c] += 1
    return counts


def recent_tasks(tasks: Sequence[Task], limit: int = 3) -> list[Task]:
    """First `limit` tasks in collection order."""
    return list(tasks[: max(0, limit)])


def build_task_view(
    tasks: Sequence[Task],
    *,
    scope: TaskScope | str = TaskScope.ALL,
    completion: CompletionFilter | str = CompletionFilter.ALL,
    query: str = "",
    today: date | None = None,
) -> TaskView:
    today = today or date.today()
    visible = select_tasks(tasks, scope=scope, completion=completion, query=query, today=today)
    return TaskView(tasks=tuple(visible), stats=compute_stats(tasks, today=today))
