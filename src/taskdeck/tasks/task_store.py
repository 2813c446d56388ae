# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import json
import logging
from dataclasses import replace

from ..core.lifecycle import StateContainer
from ..core.ports import KeyValueStorage
from .task_models import Priority, Task, TasksState

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"


def _detached(task: Task) -> Task:
    return replace(task, categories=list(task.categories) if task.categories is not None else None)


class TaskStore(StateContainer):
    """
    Ordered task collection persisted to client-local storage.

    - insertion order is the canonical order (views sort downstream)
    - every effective mutation rewrites the whole collection under "tasks"
    - mutations addressing a missing id are silent no-ops (no write)

    Tasks never leave the store by reference: `add` keeps a copy of its argument
    and every read returns copies.

    Constructed empty; call `restore()` once at startup.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__("tasks")
        self._storage = storage
        self._tasks: list[Task] = []

    # ---- persistence ----

    def restore(self) -> int:
        """
        Load the collection from storage.

        Absent or corrupt data yields an empty collection. Malformed entries are skipped.
        Returns the number of tasks loaded.
        """
        try:
            raw = self._storage.get(TASKS_KEY)
        except Exception:
            logger.exception("Failed to read %r from storage; starting empty.", TASKS_KEY)
            raw = None

        self._tasks = self._decode(raw)
        logger.info("TaskStore restored total=%d", len(self._tasks))
        self._notify()
        return len(self._tasks)

    @staticmethod
    def _decode(raw: str | None) -> list[Task]:
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Stored tasks are not valid JSON; starting empty.")
            return []
        if not isinstance(data, list):
            logger.warning("Stored tasks are not a list; starting empty.")
            return []

        out: list[Task] = []
        seen: set[str] = set()
        for item in data:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object task entry: %r", item)
                continue
            try:
                task = Task.from_dict(item)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed task entry id=%r: %s", item.get("id"), exc)
                continue
            if task.id in seen:
                logger.warning("Skipping duplicate task id=%s in storage", task.id)
                continue
            seen.add(task.id)
            out.append(task)
        return out

    def _save(self) -> None:
        payload = json.dumps([t.to_dict() for t in self._tasks], ensure_ascii=False)
        self._storage.set(TASKS_KEY, payload)

    def _commit(self) -> None:
        self._save()
        self._notify()

    # ---- reads ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(_detached(t) for t in self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Task | None:
        task = self._find(task_id)
        return _detached(task) if task is not None else None

    def _find(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def snapshot(self) -> TasksState:
        return TasksState(tasks=self.tasks)

    # ---- mutations ----

    def add(self, task: Task) -> None:
        if not task.text or not task.text.strip():
            raise ValueError("text is required")
        task = replace(_detached(task), priority=Priority.parse(task.priority))

        if self._find(task.id) is not None:
            # Caller error; the store does not reject it.
            logger.warning("Duplicate task id added: %s", task.id)

        self._tasks.append(task)
        logger.debug("Task added id=%s priority=%s", task.id, task.priority.value)
        self._commit()

    def toggle_completed(self, task_id: str) -> bool:
        task = self._find(task_id)
        if task is None:
            return False
        task.completed = not task.completed
        logger.debug("Task id=%s completed=%s", task_id, task.completed)
        self._commit()
        return True

    def toggle_favorite(self, task_id: str) -> bool:
        task = self._find(task_id)
        if task is None:
            return False
        task.favorite = not task.favorite
        logger.debug("Task id=%s favorite=%s", task_id, task.favorite)
        self._commit()
        return True

    def set_priority(self, task_id: str, priority: Priority | str) -> bool:
        new_priority = Priority.parse(priority)
        task = self._find(task_id)
        if task is None:
            return False
        task.priority = new_priority
        logger.debug("Task id=%s priority=%s", task_id, new_priority.value)
        self._commit()
        return True

    def delete(self, task_id: str) -> bool:
        kept = [t for t in self._tasks if t.id != task_id]
        if len(kept) == len(self._tasks):
            return False
        self._tasks = kept
        logger.debug("Task deleted id=%s", task_id)
        self._commit()
        return True
