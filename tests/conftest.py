"""Shared fixtures for the task dashboard tests."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from taskdash.models import Task

T0 = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class SequentialIds:
    def __init__(self) -> None:
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"new-{self.n}"


def make_task(task_id, revenue=100.0, time_taken=10.0, status="Not Started", priority="Medium", **kwargs) -> Task:
    created_at = kwargs.pop("created_at", T0 - timedelta(days=1))
    return Task(
        id=task_id,
        title=kwargs.pop("title", f"Task {task_id}"),
        revenue=revenue,
        time_taken=time_taken,
        priority=priority,
        status=status,
        created_at=created_at,
        **kwargs,
    )


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def ids():
    return SequentialIds()


@pytest.fixture()
def raw_records():
    return [
        {"id": 1, "title": "Close renewal", "revenue": 100, "timeTaken": 10, "priority": "High", "status": "Done",
         "createdAt": "2023-11-02T09:00:00.000Z"},
        {"id": "2", "title": "Demo", "revenue": "50", "timeTaken": 5, "priority": "Low", "status": "Not Started"},
        {"title": "No id", "revenue": "n/a", "timeTaken": 0, "priority": "Medium", "status": "In Progress"},
        None,
        "not a record",
    ]


@pytest.fixture()
def tasks_file(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(
        json.dumps(
            [
                {"id": "a", "title": "Alpha", "revenue": 100, "timeTaken": 10, "priority": "High", "status": "Done"},
                {"id": "b", "title": "Beta", "revenue": 50, "timeTaken": 5, "priority": "Low", "status": "Not Started"},
                {"id": "c", "title": "Gamma", "revenue": 900, "timeTaken": 3, "priority": "Medium", "status": "In Progress"},
            ]
        ),
        encoding="utf-8",
    )
    return path
