from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Sequence

import altair as alt
import pandas as pd

from taskdash.charts import grouped_bar, to_vega_spec
from taskdash.data import tasks_frame
from taskdash.filters import TaskFilters, apply_filters
from taskdash.metrics import compute_metrics, derive_sorted
from taskdash.models import Task


def compute_overview(filters: TaskFilters, tasks: Sequence[Task]) -> Dict[str, Any]:
    ranked = apply_filters(derive_sorted(tasks), filters)
    metrics = compute_metrics(ranked, filters.thresholds)
    if not ranked:
        return {"filters": asdict(filters), "kpis": asdict(metrics), "counts_by_status": {}, "top": [], "charts": {}}

    df = tasks_frame(ranked)
    counts = df["status"].value_counts().sort_index()

    top = df.head(filters.top_n).reset_index(drop=True)
    top.insert(0, "rank", top.index + 1)

    by_priority = df.groupby("priority")["revenue"].sum().reset_index()
    by_status = df.groupby("status")["time_taken"].sum().reset_index()

    status_hover = alt.selection_point(fields=["status"], on="mouseover", empty="all")
    scatter = (
        alt.Chart(df[["id", "title", "status", "revenue", "time_taken", "roi"]])
        .mark_circle(size=70)
        .encode(
            x=alt.X("time_taken:Q", title="Hours", axis=alt.Axis(grid=False)),
            y=alt.Y("revenue:Q", title="Revenue", axis=alt.Axis(format="$~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("status:N", title="Status"),
            opacity=alt.condition(status_hover, alt.value(0.9), alt.value(0.2)),
            tooltip=[
                alt.Tooltip("title:N", title="Task"),
                alt.Tooltip("revenue:Q", format="$,.0f"),
                alt.Tooltip("time_taken:Q", title="Hours", format=",.1f"),
                alt.Tooltip("roi:Q", title="ROI ($/h)", format="$,.2f"),
            ],
        )
        .add_params(status_hover)
        .properties(height=260)
    )

    return {
        "filters": asdict(filters),
        "kpis": asdict(metrics),
        "counts_by_status": {str(k): int(v) for k, v in counts.items()},
        "top": top.to_dict(orient="records"),
        "charts": {
            "revenue_by_priority": grouped_bar(by_priority, "priority", "revenue", title="Priority", value_format="$,.0f"),
            "time_by_status": grouped_bar(by_status, "status", "time_taken", title="Status", value_format=",.1f"),
            "roi_distribution": to_vega_spec(scatter),
        },
    }


def export_frame(filters: TaskFilters, tasks: Sequence[Task]) -> pd.DataFrame:
    ranked = apply_filters(derive_sorted(tasks), filters)
    df = tasks_frame(ranked)
    if not df.empty:
        df.insert(0, "rank", range(1, len(df) + 1))
    return df
