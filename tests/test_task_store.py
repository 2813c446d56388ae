# tests/test_task_store.py

from __future__ import annotations

import json

import pytest

from taskdeck.tasks.task_models import Priority, Task, new_task
from taskdeck.tasks.task_store import TASKS_KEY, TaskStore

from .fakes import T0, BrokenStorage, RecordingStorage, hours, make_task


def test_add_appends_persists_and_is_retrievable(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a", "first"))
    store.add(make_task("b", "second"))

    assert len(store) == 2
    assert [t.id for t in store.tasks] == ["a", "b"]
    assert store.get("b") is not None and store.get("b").text == "second"
    assert storage.write_count(TASKS_KEY) == 2

    saved = json.loads(storage.data[TASKS_KEY])
    assert [t["id"] for t in saved] == ["a", "b"]
    assert saved[0]["priority"] == "medium"
    assert saved[0]["createdAt"] == T0.isoformat()
    assert "dueDate" not in saved[0]


def test_add_rejects_empty_text_without_touching_state(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    with pytest.raises(ValueError):
        store.add(make_task("a", "   "))
    assert len(store) == 0
    assert storage.writes == []


def test_add_rejects_unknown_priority(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    task = make_task("a", "x")
    task.priority = "urgent"  # type: ignore[assignment]
    with pytest.raises(ValueError):
        store.add(task)
    assert len(store) == 0


def test_toggle_completed_is_an_involution(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a"))

    assert store.toggle_completed("a") is True
    assert store.get("a").completed is True
    store.toggle_completed("a")
    assert store.get("a").completed is False


def test_toggle_favorite_flips_flag(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a"))
    store.toggle_favorite("a")
    assert store.get("a").favorite is True
    assert json.loads(storage.data[TASKS_KEY])[0]["favorite"] is True


def test_missing_id_operations_are_silent_noops(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a"))
    before = storage.write_count()

    assert store.delete("nope") is False
    assert store.toggle_completed("nope") is False
    assert store.toggle_favorite("nope") is False
    assert store.set_priority("nope", "high") is False

    assert [t.id for t in store.tasks] == ["a"]
    assert storage.write_count() == before


def test_delete_and_set_priority_persist(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a"))
    store.add(make_task("b"))

    store.set_priority("b", "high")
    assert store.get("b").priority is Priority.HIGH

    store.delete("a")
    saved = json.loads(storage.data[TASKS_KEY])
    assert [(t["id"], t["priority"]) for t in saved] == [("b", "high")]


def test_set_priority_validates_before_lookup(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a"))
    with pytest.raises(ValueError):
        store.set_priority("a", "critical")
    assert store.get("a").priority is Priority.MEDIUM


def test_constructed_empty_until_restore() -> None:
    payload = json.dumps([make_task("a", "saved").to_dict()])
    storage = RecordingStorage({TASKS_KEY: payload})
    store = TaskStore(storage)

    assert len(store) == 0
    assert store.restore() == 1
    assert store.get("a").text == "saved"
    assert store.get("a").created_at == T0
    assert storage.writes == []


@pytest.mark.parametrize("raw", ["{not json", '{"a": 1}', '"text"', "null"])
def test_restore_corrupt_data_yields_empty(raw: str) -> None:
    store = TaskStore(RecordingStorage({TASKS_KEY: raw}))
    assert store.restore() == 0
    assert store.tasks == ()


def test_restore_skips_malformed_entries() -> None:
    good = make_task("ok", "fine", due_date=T0 + hours(24), categories=["work"]).to_dict()
    raw = json.dumps(
        [
            good,
            {"id": "no-text"},
            {"id": "bad-prio", "text": "x", "priority": "urgent", "createdAt": T0.isoformat()},
            "not an object",
            good,
        ]
    )
    store = TaskStore(RecordingStorage({TASKS_KEY: raw}))
    store.restore()

    assert [t.id for t in store.tasks] == ["ok"]
    restored = store.get("ok")
    assert restored.categories == ["work"]
    assert restored.due_date == T0 + hours(24)


def test_restore_reads_browser_style_timestamps() -> None:
    raw = json.dumps(
        [{"id": "1", "text": "x", "completed": True, "priority": "low", "createdAt": "2025-01-15T09:00:00.000Z", "favorite": False}]
    )
    store = TaskStore(RecordingStorage({TASKS_KEY: raw}))
    store.restore()
    assert store.get("1").created_at == T0
    assert store.get("1").completed is True


def test_restore_survives_unreadable_storage() -> None:
    store = TaskStore(BrokenStorage())
    assert store.restore() == 0


def test_subscribers_notified_only_on_effective_mutations(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    calls: list[int] = []
    unsubscribe = store.subscribe(lambda: calls.append(len(store)))

    store.add(make_task("a"))
    store.delete("missing")
    store.toggle_completed("a")
    unsubscribe()
    store.delete("a")

    assert calls == [1, 1]


def test_snapshot_is_detached_from_later_mutations(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a"))
    snap = store.snapshot()
    store.toggle_completed("a")
    assert snap.tasks[0].completed is False


def test_reads_do_not_expose_live_tasks(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    store.add(make_task("a", "x", categories=["work"]))
    writes = storage.write_count()

    store.snapshot().tasks[0].categories.append("personal")
    store.tasks[0].completed = True
    store.get("a").text = ""

    task = store.get("a")
    assert task.categories == ["work"]
    assert task.completed is False
    assert task.text == "x"
    assert storage.write_count() == writes


def test_add_keeps_its_own_copy(storage: RecordingStorage) -> None:
    store = TaskStore(storage)
    task = make_task("a", "x", categories=["health"])
    store.add(task)

    task.text = ""
    task.categories.append("work")

    assert store.get("a").text == "x"
    assert store.get("a").categories == ["health"]
    assert json.loads(storage.data[TASKS_KEY])[0]["categories"] == ["health"]


def test_new_task_assigns_unique_ids() -> None:
    a = new_task("one")
    b = new_task("two", priority="HIGH", categories=["work"])
    assert a.id != b.id
    assert b.priority is Priority.HIGH
    assert a.created_at.tzinfo is not None
    with pytest.raises(ValueError):
        new_task("  ")


def test_task_round_trips_through_persisted_shape() -> None:
    task = make_task("a", "x", priority="high", favorite=True, categories=["health"], due_date=T0)
    assert Task.from_dict(task.to_dict()) == task
