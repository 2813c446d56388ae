# src/taskdeck/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Display rank: high first."""
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        """Strict parse; raises ValueError for anything outside the enum."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"invalid priority: {raw!r}") from None


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def parse_timestamp(raw: Any) -> datetime:
    """ISO-8601 -> aware datetime. Naive values are taken as local time."""
    if isinstance(raw, datetime):
        dt = raw
    else:
        dt = datetime.fromisoformat(str(raw))
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


@dataclass(slots=True)
class Task:
    id: str
    text: str
    priority: Priority
    created_at: datetime

    completed: bool = False
    due_date: datetime | None = None
    categories: list[str] | None = None
    favorite: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Persisted shape (camelCase keys, ISO timestamps)."""
        out: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority.value,
            "createdAt": self.created_at.isoformat(),
            "favorite": self.favorite,
        }
        if self.due_date is not None:
            out["dueDate"] = self.due_date.isoformat()
        if self.categories:
            out["categories"] = list(self.categories)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Inverse of to_dict. Raises ValueError/KeyError/TypeError on malformed input."""
        task_id = data["id"]
        text = data["text"]
        if not isinstance(task_id, str) or not task_id:
            raise ValueError("task id must be a non-empty string")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("task text must be a non-empty string")

        due_raw = data.get("dueDate")
        cats_raw = data.get("categories")
        categories = [str(c) for c in cats_raw] if isinstance(cats_raw, list) and cats_raw else None

        return cls(
            id=task_id,
            text=text,
            priority=Priority.parse(data.get("priority")),
            created_at=parse_timestamp(data["createdAt"]),
            completed=bool(data.get("completed", False)),
            due_date=parse_timestamp(due_raw) if due_raw else None,
            categories=categories,
            favorite=bool(data.get("favorite", False)),
        )


def new_task_id() -> str:
    return uuid.uuid4().hex


def new_task(
    text: str,
    *,
    priority: Priority | str = Priority.MEDIUM,
    due_date: datetime | None = None,
    categories: list[str] | None = None,
    now: datetime | None = None,
    task_id: str | None = None,
) -> Task:
    """
    Build a fresh task for `TaskStore.add`.

    The caller owns id assignment; the store never generates ids.
    """
    if not text or not text.strip():
        raise ValueError("text is required")
    return Task(
        id=task_id or new_task_id(),
        text=text.strip(),
        priority=Priority.parse(priority),
        created_at=now or datetime.now().astimezone(),
        due_date=due_date,
        categories=list(categories) if categories else None,
    )


@dataclass(frozen=True, slots=True)
class TasksState:
    """Immutable snapshot published to the root state tree."""

    tasks: tuple[Task, ...] = field(default_factory=tuple)
