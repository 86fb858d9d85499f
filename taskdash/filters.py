from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, TypeVar

from taskdash.models import DerivedTask

T = TypeVar("T", bound=DerivedTask)


@dataclass(frozen=True)
class Thresholds:
    # average ROI (revenue per hour) bands for the performance grade
    excellent_roi: float = 500.0
    good_roi: float = 200.0


@dataclass(frozen=True)
class TaskFilters:
    statuses: List[str] = field(default_factory=list)
    priorities: List[str] = field(default_factory=list)
    query: str = ""
    top_n: int = 15
    thresholds: Thresholds = field(default_factory=Thresholds)


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values or isinstance(values, str):
        return []
    return [str(x) for x in values if x is not None and str(x).strip()]


def _as_float(value: object, default: float) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except Exception:
        return default


def normalize_filters(raw: Optional[dict]) -> TaskFilters:
    raw = raw or {}

    top_n = raw.get("top_n", 15)
    try:
        top_n = int(top_n)
    except Exception:
        top_n = 15
    top_n = max(1, min(200, top_n))

    t = raw.get("thresholds") or {}
    thresholds = Thresholds(
        excellent_roi=_as_float(t.get("excellent_roi", 500.0), 500.0),
        good_roi=_as_float(t.get("good_roi", 200.0), 200.0),
    )

    return TaskFilters(
        statuses=_as_str_list(raw.get("statuses")),
        priorities=_as_str_list(raw.get("priorities")),
        query=(raw.get("query") or "").strip(),
        top_n=top_n,
        thresholds=thresholds,
    )


def apply_filters(tasks: Sequence[T], filters: TaskFilters) -> List[T]:
    out = list(tasks)
    if filters.statuses:
        wanted = set(filters.statuses)
        out = [t for t in out if t.status in wanted]
    if filters.priorities:
        wanted = set(filters.priorities)
        out = [t for t in out if t.priority in wanted]
    if filters.query:
        q = filters.query.lower()
        out = [t for t in out if q in t.title.lower() or q in t.notes.lower() or q in t.id.lower()]
    return out
