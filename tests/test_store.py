"""Unit tests for TaskStore mutations and the one-shot session load."""

import threading
from datetime import timedelta

import pytest

from conftest import T0, make_task
from taskdash import store as store_module
from taskdash.data import SEED_COUNT
from taskdash.store import TaskStore


@pytest.fixture()
def store(clock, ids):
    return TaskStore(
        [
            make_task("a", revenue=100, time_taken=10, status="Done", completed_at=T0),
            make_task("b", revenue=50, time_taken=5, status="Not Started"),
        ],
        clock=clock,
        id_factory=ids,
    )


def _members(store):
    return sorted(store.tasks, key=lambda t: t.id)


def test_initial_state_is_derived(store):
    assert store.metrics.total_revenue == 150.0
    assert [t.id for t in store.derived_sorted] == ["a", "b"]
    assert store.last_deleted is None
    assert store.loading is False
    assert store.error is None


def test_add_task_generates_id_and_stamps(store, clock):
    task = store.add_task({"title": "New", "revenue": 30, "timeTaken": 0, "priority": "Low", "status": "In Progress"})
    assert task.id == "new-1"
    assert task.time_taken == 1.0
    assert task.created_at == clock.now
    assert task.completed_at is None
    assert store.tasks[-1] == task
    assert store.metrics.total_revenue == 180.0


def test_add_done_task_sets_completed_at(store, clock):
    task = store.add_task({"id": "given", "title": "Done already", "revenue": 10, "time_taken": 2, "status": "Done"})
    assert task.id == "given"
    assert task.completed_at == clock.now


def test_add_task_with_existing_id_gets_fresh_id(store):
    task = store.add_task({"id": "a", "title": "Clash", "revenue": 10, "time_taken": 1})
    assert task.id == "new-1"
    ids = [t.id for t in store.tasks]
    assert len(ids) == len(set(ids)) == 3
    store.delete_task("a")
    assert [t.id for t in store.tasks] == ["b", "new-1"]


def test_update_unknown_id_is_noop(store):
    before = store.tasks
    assert store.update_task("nope", {"title": "x"}) is None
    assert store.tasks == before


def test_update_into_done_stamps_completed_at(store, clock):
    clock.advance(hours=3)
    updated = store.update_task("b", {"status": "Done"})
    assert updated.completed_at == clock.now
    assert updated.completed_at >= updated.created_at
    assert store.metrics.time_efficiency_pct == 100.0


def test_update_into_done_never_precedes_created_at(clock, ids):
    future = clock.now + timedelta(days=5)
    s = TaskStore([make_task("f", created_at=future)], clock=clock, id_factory=ids)
    updated = s.update_task("f", {"status": "Done"})
    assert updated.completed_at == future


def test_update_with_explicit_completed_at(store):
    updated = store.update_task("b", {"status": "Done", "completedAt": "2024-05-01T00:00:00Z"})
    assert updated.to_dict()["completed_at"] == "2024-05-01T00:00:00.000Z"


def test_update_into_done_with_null_completed_at_stamps(store, clock):
    clock.advance(hours=1)
    updated = store.update_task("b", {"status": "Done", "completed_at": None})
    assert updated.completed_at == clock.now
    updated = store.update_task("b", {"completedAt": "not a date"})
    assert updated.completed_at == clock.now


def test_update_leaving_done_clears_completed_at(store):
    updated = store.update_task("a", {"status": "In Progress"})
    assert updated.completed_at is None


def test_update_reapplies_time_invariant_and_ignores_id(store):
    updated = store.update_task("a", {"id": "zzz", "timeTaken": -2, "revenue": "junk", "colour": "red"})
    assert updated.id == "a"
    assert updated.time_taken == 1.0
    assert updated.revenue == 0.0
    assert not hasattr(updated, "colour")


def test_delete_then_undo_restores_membership(store):
    before = _members(store)
    removed = store.delete_task("a")
    assert removed.id == "a"
    assert store.last_deleted == removed
    assert [t.id for t in store.tasks] == ["b"]

    assert store.undo_delete() == removed
    assert _members(store) == before
    assert store.last_deleted is None

    assert store.undo_delete() is None
    assert _members(store) == before


def test_delete_unknown_id_keeps_slot(store):
    store.delete_task("a")
    assert store.delete_task("missing") is None
    assert store.last_deleted.id == "a"


def test_second_delete_overwrites_slot(store):
    store.delete_task("a")
    store.delete_task("b")
    assert store.last_deleted.id == "b"
    store.undo_delete()
    assert [t.id for t in store.tasks] == ["b"]


def test_clear_last_deleted(store):
    store.delete_task("a")
    store.clear_last_deleted()
    assert store.last_deleted is None
    assert store.undo_delete() is None
    assert [t.id for t in store.tasks] == ["b"]


def test_snapshot_surface(store):
    store.delete_task("b")
    snap = store.snapshot()
    assert set(snap) == {"tasks", "derived_sorted", "metrics", "last_deleted", "loading", "error"}
    assert snap["last_deleted"]["id"] == "b"
    assert snap["metrics"]["total_revenue"] == 100.0
    assert snap["derived_sorted"][0]["roi"] == 10.0


def test_ensure_loaded_runs_once(tasks_file, monkeypatch):
    calls = []
    real_loader = store_module.load_raw_tasks

    def counting_loader(path):
        calls.append(path)
        return real_loader(path)

    monkeypatch.setattr(store_module, "load_raw_tasks", counting_loader)
    s = TaskStore()
    assert s.ensure_loaded(tasks_file) is True
    assert s.ensure_loaded(tasks_file) is False
    assert s.ensure_loaded(tasks_file) is False
    assert len(calls) == 1
    assert [t.id for t in s.tasks] == ["a", "b", "c"]
    assert [t.id for t in s.derived_sorted] == ["c", "a", "b"]


def test_ensure_loaded_once_across_threads(tasks_file, monkeypatch):
    calls = []
    real_loader = store_module.load_raw_tasks

    def counting_loader(path):
        calls.append(path)
        return real_loader(path)

    monkeypatch.setattr(store_module, "load_raw_tasks", counting_loader)
    s = TaskStore()
    results = []
    threads = [threading.Thread(target=lambda: results.append(s.ensure_loaded(tasks_file))) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results.count(True) == 1
    assert len(calls) == 1
    assert len(s.tasks) == 3


def test_ensure_loaded_missing_file_falls_back(tmp_path):
    s = TaskStore()
    assert s.ensure_loaded(tmp_path / "missing.json") is True
    assert "missing.json" in s.error
    assert len(s.tasks) == SEED_COUNT
    assert s.loading is False


def test_ensure_loaded_empty_file_uses_seed(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text("[]", encoding="utf-8")
    s = TaskStore()
    s.ensure_loaded(path)
    assert s.error is None
    assert len(s.tasks) == SEED_COUNT


def test_ensure_loaded_unexpected_error_falls_back(tasks_file, monkeypatch):
    def broken_normalize(raw):
        raise KeyError("boom")

    monkeypatch.setattr(store_module, "normalize_tasks", broken_normalize)
    s = TaskStore()
    assert s.ensure_loaded(tasks_file) is True
    assert s.loading is False
    assert "boom" in s.error
    assert len(s.tasks) == SEED_COUNT
    assert s.ensure_loaded(tasks_file) is False
