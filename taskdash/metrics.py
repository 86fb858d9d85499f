from __future__ import annotations

import math
from dataclasses import asdict
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from taskdash.filters import Thresholds
from taskdash.models import (
    DONE,
    INITIAL_METRICS,
    PRIORITY_WEIGHTS,
    DerivedTask,
    Metrics,
    Task,
)


def _ratio(numerator: float, denominator: float) -> float:
    """Division with 0.0 as the answer for a non-positive or non-finite denominator."""
    if not math.isfinite(numerator) or not math.isfinite(denominator) or denominator <= 0:
        return 0.0
    return numerator / denominator


def compute_roi(revenue: float, time_taken: float) -> float:
    """Revenue per hour invested; 0.0 when ``time_taken`` is zero or negative."""
    return _ratio(float(revenue), float(time_taken))


def with_derived(task: Task) -> DerivedTask:
    return DerivedTask(
        **asdict(task),
        roi=compute_roi(task.revenue, task.time_taken),
        priority_weight=PRIORITY_WEIGHTS.get(task.priority, 0),
    )


def _frame(tasks: Sequence[Task]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "revenue": [float(t.revenue) for t in tasks],
            "time_taken": [float(t.time_taken) for t in tasks],
            "status": [t.status for t in tasks],
        }
    )


def compute_total_revenue(tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    return float(_frame(tasks)["revenue"].sum())


def compute_total_time_taken(tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    return float(_frame(tasks)["time_taken"].sum())


def compute_time_efficiency(tasks: Sequence[Task]) -> float:
    """Share of logged hours that belong to Done tasks, as 0-100."""
    if not tasks:
        return 0.0
    df = _frame(tasks)
    done_time = float(df.loc[df["status"] == DONE, "time_taken"].sum())
    return _ratio(done_time, float(df["time_taken"].sum())) * 100.0


def compute_revenue_per_hour(tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    df = _frame(tasks)
    return _ratio(float(df["revenue"].sum()), float(df["time_taken"].sum()))


def compute_average_roi(tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    rois = pd.Series([compute_roi(t.revenue, t.time_taken) for t in tasks], dtype=float)
    return float(rois.mean())


def compute_performance_grade(average_roi: float, thresholds: Optional[Thresholds] = None) -> str:
    thresholds = thresholds or Thresholds()
    if not math.isfinite(average_roi):
        return "Needs Improvement"
    if average_roi >= thresholds.excellent_roi:
        return "Excellent"
    if average_roi >= thresholds.good_roi:
        return "Good"
    return "Needs Improvement"


def compute_metrics(tasks: Sequence[Task], thresholds: Optional[Thresholds] = None) -> Metrics:
    if not tasks:
        return INITIAL_METRICS
    average_roi = compute_average_roi(tasks)
    return Metrics(
        total_revenue=compute_total_revenue(tasks),
        total_time_taken=compute_total_time_taken(tasks),
        time_efficiency_pct=compute_time_efficiency(tasks),
        revenue_per_hour=compute_revenue_per_hour(tasks),
        average_roi=average_roi,
        performance_grade=compute_performance_grade(average_roi, thresholds),
    )


def sort_key(task: DerivedTask) -> Tuple[float, float, str]:
    # ROI desc, revenue desc, then id asc so equal-scoring rows never shuffle.
    return (-task.roi, -task.revenue, task.id)


def sort_tasks(tasks: Sequence[DerivedTask]) -> List[DerivedTask]:
    return sorted(tasks, key=sort_key)


def derive_sorted(tasks: Sequence[Task]) -> List[DerivedTask]:
    return sort_tasks([with_derived(t) for t in tasks])
