from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional

PRIORITIES = ("Low", "Medium", "High")
STATUSES = ("Not Started", "In Progress", "Done")
DONE = "Done"

PRIORITY_WEIGHTS = {"High": 3, "Medium": 2, "Low": 1}


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp as ISO-8601 UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    revenue: float
    time_taken: float
    priority: str
    status: str
    created_at: datetime
    notes: str = ""
    completed_at: Optional[datetime] = None

    @property
    def is_done(self) -> bool:
        return self.status == DONE

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["created_at"] = to_iso(self.created_at)
        out["completed_at"] = to_iso(self.completed_at)
        return out


TASK_FIELDS = tuple(f.name for f in fields(Task))


@dataclass(frozen=True)
class DerivedTask(Task):
    roi: float = 0.0
    priority_weight: int = 0


@dataclass(frozen=True)
class Metrics:
    total_revenue: float = 0.0
    total_time_taken: float = 0.0
    time_efficiency_pct: float = 0.0
    revenue_per_hour: float = 0.0
    average_roi: float = 0.0
    performance_grade: str = "Needs Improvement"


INITIAL_METRICS = Metrics()
