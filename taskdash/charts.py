from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def grouped_bar(df: pd.DataFrame, category: str, value: str, *, title: str, value_format: str) -> Dict[str, Any]:
    hover = alt.selection_point(fields=[category], on="mouseover", empty="all")
    bar = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X(f"{category}:N", title=title, sort="-y", axis=alt.Axis(grid=False)),
            y=alt.Y(f"{value}:Q", axis=alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(f"{category}:N", legend=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip(f"{category}:N", title=title), alt.Tooltip(f"{value}:Q", format=value_format)],
        )
        .add_params(hover)
        .properties(height=260)
    )
    return to_vega_spec(bar)
