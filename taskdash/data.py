from __future__ import annotations

import json
import math
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from taskdash.models import DONE, TASK_FIELDS, Task


DATA_DIR = Path(__file__).resolve().parents[1]
TASKS_PATH = DATA_DIR / "tasks.json"

# Fallback timestamps are anchored here instead of the wall clock so that
# normalizing the same input always yields the same records.
SEED_ANCHOR = datetime(2024, 1, 1, tzinfo=timezone.utc)
SEED_COUNT = 50
SEED_RANDOM_STATE = 42

COMPLETION_LAG = timedelta(hours=24)

# Raw JSON may use the dashboard's camelCase keys or snake_case.
TASK_KEY_ALIASES = {
    "timeTaken": "time_taken",
    "createdAt": "created_at",
    "completedAt": "completed_at",
}


class TaskLoadError(RuntimeError):
    """The task source could not be read or decoded."""


def canonical_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        name = TASK_KEY_ALIASES.get(key, key)
        # An explicit snake_case key wins over its camelCase alias.
        if name in out and key != name:
            continue
        out[name] = value
    return out


def coerce_number(value: object, default: float = 0.0) -> float:
    """Parse ``value`` as a finite float; booleans, junk, NaN and inf map to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(out) or math.isinf(out):
        return default
    return out


def coerce_time_taken(value: object) -> float:
    hours = coerce_number(value, default=1.0)
    return hours if hours > 0 else 1.0


def parse_timestamp(value: object) -> Optional[datetime]:
    """Parse an ISO string or datetime into a tz-aware UTC datetime, or None."""
    if not isinstance(value, (str, datetime)):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        ts = pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _text(value: object, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def normalize_task(raw: object, index: int) -> Task:
    record = canonical_keys(raw) if isinstance(raw, Mapping) else {}

    raw_id = record.get("id")
    task_id = f"task-{index + 1}" if raw_id is None else str(raw_id)
    status = _text(record.get("status"))

    created_at = parse_timestamp(record.get("created_at"))
    if created_at is None:
        created_at = SEED_ANCHOR - timedelta(days=index + 1)

    completed_at = parse_timestamp(record.get("completed_at"))
    if completed_at is None and status == DONE:
        completed_at = created_at + COMPLETION_LAG

    return Task(
        id=task_id,
        title=_text(record.get("title"), "Untitled"),
        revenue=coerce_number(record.get("revenue"), default=0.0),
        time_taken=coerce_time_taken(record.get("time_taken")),
        priority=_text(record.get("priority")),
        status=status,
        notes=_text(record.get("notes")),
        created_at=created_at,
        completed_at=completed_at,
    )


def normalize_tasks(raw: object) -> List[Task]:
    """Convert loosely-typed records into Task objects, one per input row, in order.

    Anything other than a list/tuple counts as no rows. Malformed rows are
    coerced, never raised, so one bad record cannot abort the batch.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    return [normalize_task(item, idx) for idx, item in enumerate(raw)]


def load_raw_tasks(path: Path = TASKS_PATH) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as exc:
        raise TaskLoadError(f"Failed to load {Path(path).name} (not found)") from exc
    except OSError as exc:
        raise TaskLoadError(f"Failed to load {Path(path).name} ({exc.strerror or exc})") from exc
    except ValueError as exc:
        raise TaskLoadError(f"Failed to parse {Path(path).name}: {exc}") from exc


def tasks_frame(tasks: Iterable[Task]) -> pd.DataFrame:
    rows = [t.to_dict() for t in tasks]
    if not rows:
        return pd.DataFrame(columns=list(TASK_FIELDS))
    return pd.DataFrame(rows)
