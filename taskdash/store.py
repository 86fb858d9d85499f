"""In-memory task store.

The store owns the task collection for one session. Its mutation methods are
the only write surface; derived rows and aggregate metrics are recomputed
wholesale after every change.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import asdict, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from taskdash.data import (
    SEED_COUNT,
    TASKS_PATH,
    TaskLoadError,
    canonical_keys,
    coerce_number,
    coerce_time_taken,
    load_raw_tasks,
    normalize_tasks,
    parse_timestamp,
)
from taskdash.filters import Thresholds
from taskdash.metrics import compute_metrics, derive_sorted
from taskdash.models import DONE, TASK_FIELDS, DerivedTask, Metrics, Task
from taskdash.seed import generate_sales_tasks

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = {"created_at", "completed_at"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class TaskStore:
    def __init__(
        self,
        tasks: Optional[List[Task]] = None,
        *,
        thresholds: Optional[Thresholds] = None,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._lock = threading.RLock()
        self._clock = clock
        self._id_factory = id_factory
        self._thresholds = thresholds or Thresholds()
        self._tasks: List[Task] = list(tasks or [])
        self._last_deleted: Optional[Task] = None
        self._load_started = False
        self._loading = False
        self._error: Optional[str] = None
        self._derived_sorted: List[DerivedTask] = []
        self._metrics: Metrics = Metrics()
        self._recompute()

    # ---------------- Read surface ----------------
    @property
    def tasks(self) -> List[Task]:
        with self._lock:
            return list(self._tasks)

    @property
    def derived_sorted(self) -> List[DerivedTask]:
        with self._lock:
            return list(self._derived_sorted)

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    @property
    def last_deleted(self) -> Optional[Task]:
        return self._last_deleted

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "tasks": [t.to_dict() for t in self._tasks],
                "derived_sorted": [t.to_dict() for t in self._derived_sorted],
                "metrics": asdict(self._metrics),
                "last_deleted": self._last_deleted.to_dict() if self._last_deleted else None,
                "loading": self._loading,
                "error": self._error,
            }

    # ---------------- Session load ----------------
    def ensure_loaded(self, source: Path = TASKS_PATH) -> bool:
        """Seed the store from ``source`` once per session.

        Later calls return False without touching the file. A missing or
        broken source records ``error`` and falls back to the generated set.
        """
        with self._lock:
            if self._load_started:
                return False
            self._load_started = True
            self._loading = True

        logger.info("Loading tasks from %s", source)
        normalized: List[Task] = []
        error: Optional[str] = None
        try:
            normalized = normalize_tasks(load_raw_tasks(source))
            if not normalized:
                logger.info("No tasks in %s; generating %d seed tasks", source, SEED_COUNT)
                normalized = generate_sales_tasks(SEED_COUNT)
        except Exception as exc:
            logger.exception("Task load failed")
            normalized = generate_sales_tasks(SEED_COUNT)
            error = str(exc) if isinstance(exc, TaskLoadError) else f"Failed to load tasks: {exc}"
        finally:
            with self._lock:
                self._tasks = normalized
                self._error = error
                self._loading = False
                self._recompute()
        logger.info("Loaded %d tasks", len(normalized))
        return True

    # ---------------- Mutations ----------------
    def add_task(self, fields: Mapping[str, Any]) -> Task:
        data = canonical_keys(fields)
        now = self._clock()
        status = str(data.get("status") or "")
        raw_id = data.get("id")
        with self._lock:
            task_id = str(raw_id) if raw_id is not None else None
            if task_id is not None and self._index_of(task_id) is not None:
                logger.warning("Task id %s already exists; assigning a new id", task_id)
                task_id = None
            task = Task(
                id=task_id if task_id is not None else self._id_factory(),
                title=str(data.get("title") or ""),
                revenue=coerce_number(data.get("revenue"), default=0.0),
                time_taken=coerce_time_taken(data.get("time_taken")),
                priority=str(data.get("priority") or ""),
                status=status,
                notes=str(data.get("notes") or ""),
                created_at=now,
                completed_at=now if status == DONE else None,
            )
            self._tasks.append(task)
            self._recompute()
        return task

    def update_task(self, task_id: str, patch: Mapping[str, Any]) -> Optional[Task]:
        changes = {
            k: v for k, v in canonical_keys(patch).items() if k in TASK_FIELDS and k != "id"
        }
        for name in _TIMESTAMP_FIELDS & changes.keys():
            changes[name] = parse_timestamp(changes[name])
        # An absent or unparseable timestamp counts as not supplied.
        for name in _TIMESTAMP_FIELDS:
            if name in changes and changes[name] is None:
                del changes[name]
        if "revenue" in changes:
            changes["revenue"] = coerce_number(changes["revenue"], default=0.0)
        for name in ("title", "priority", "status", "notes"):
            if name in changes:
                changes[name] = "" if changes[name] is None else str(changes[name])

        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                return None
            current = self._tasks[idx]
            merged = replace(current, **changes)

            if "completed_at" not in changes:
                if not current.is_done and merged.is_done:
                    merged = replace(merged, completed_at=max(self._clock(), merged.created_at))
                elif current.is_done and not merged.is_done:
                    merged = replace(merged, completed_at=None)

            merged = replace(merged, time_taken=coerce_time_taken(merged.time_taken))
            self._tasks[idx] = merged
            self._recompute()
            return merged

    def delete_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                return None
            removed = self._tasks.pop(idx)
            self._last_deleted = removed
            self._recompute()
            return removed

    def undo_delete(self) -> Optional[Task]:
        with self._lock:
            restored = self._last_deleted
            if restored is None:
                return None
            self._tasks.append(restored)
            self._last_deleted = None
            self._recompute()
            return restored

    def clear_last_deleted(self) -> None:
        with self._lock:
            self._last_deleted = None

    # ---------------- Internals ----------------
    def _index_of(self, task_id: str) -> Optional[int]:
        for idx, task in enumerate(self._tasks):
            if task.id == task_id:
                return idx
        return None

    def _recompute(self) -> None:
        self._derived_sorted = derive_sorted(self._tasks)
        self._metrics = compute_metrics(self._tasks, self._thresholds)
