from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

PALETTE = [
    "#1976d2", "#2e7d32", "#ff9800", "#dc004e", "#9c27b0",
    "#00acc1", "#795548", "#ff5722", "#7cb342", "#ab47bc",
]
CURRENCY_AXIS = "$,.2f"
# d3 number locale so "$" formats render as "R$ 1.234,56".
BRL_LOCALE: Dict[str, Any] = {
    "number": {
        "decimal": ",",
        "thousands": ".",
        "grouping": [3],
        "currency": ["R$\u00a0", ""],
    }
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    spec = chart.to_dict()
    spec.setdefault("config", {})["locale"] = BRL_LOCALE
    return spec


def ranked_bar(entries: Sequence[Tuple[str, float]], *, label: str, title: str, value_format: str = CURRENCY_AXIS) -> Optional[Dict[str, Any]]:
    """Bar per key in the given (already ranked) order."""
    if not entries:
        return None
    df = pd.DataFrame(list(entries), columns=["key", "value"])
    order: List[str] = df["key"].tolist()
    hover = alt.selection_point(fields=["key"], on="mouseover", empty="all")
    chart = (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(
            x=alt.X("key:N", title=None, sort=order, axis=alt.Axis(grid=False, labelAngle=-35)),
            y=alt.Y("value:Q", title=label, axis=alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("key:N", sort=order, scale=alt.Scale(range=PALETTE), legend=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.7)),
            tooltip=[alt.Tooltip("key:N", title=title), alt.Tooltip("value:Q", title=label, format=value_format)],
        )
        .add_params(hover)
    )
    return to_vega_spec(chart)


def month_line(series: Mapping[str, float], *, label: str, title: str, color: str) -> Optional[Dict[str, Any]]:
    """Line over month labels; ``series`` must already be in chronological order."""
    if not series:
        return None
    df = pd.DataFrame({"month": list(series.keys()), "value": list(series.values())})
    chart = (
        alt.Chart(df, title=title)
        .mark_area(line={"color": color}, color=color, opacity=0.2, interpolate="monotone", point={"filled": True, "color": color})
        .encode(
            x=alt.X("month:O", title=None, sort=df["month"].tolist(), axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", title=label, axis=alt.Axis(format=CURRENCY_AXIS, gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[alt.Tooltip("month:O", title="Month"), alt.Tooltip("value:Q", title=label, format=CURRENCY_AXIS)],
        )
    )
    return to_vega_spec(chart)


def share_pie(totals: Mapping[str, float], *, title: str) -> Optional[Dict[str, Any]]:
    if not totals:
        return None
    df = pd.DataFrame({"key": list(totals.keys()), "value": list(totals.values())})
    chart = (
        alt.Chart(df, title=title)
        .mark_arc()
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("key:N", scale=alt.Scale(range=PALETTE), legend=alt.Legend(orient="bottom", title=None)),
            tooltip=[alt.Tooltip("key:N", title="Year"), alt.Tooltip("value:Q", title="Revenue", format=CURRENCY_AXIS)],
        )
    )
    return to_vega_spec(chart)


def grouped_month_bars(yoy: Mapping[str, Any], *, title: str) -> Optional[Dict[str, Any]]:
    years: List[str] = list(yoy.get("years") or [])
    if not years:
        return None
    months: List[str] = list(yoy["months"])
    rows = [
        {"month": month, "year": year, "value": value}
        for year in years
        for month, value in zip(months, yoy["values"][year])
    ]
    chart = (
        alt.Chart(pd.DataFrame(rows), title=title)
        .mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("month:N", title=None, sort=months, axis=alt.Axis(grid=False)),
            xOffset=alt.XOffset("year:N"),
            y=alt.Y("value:Q", title="Sales", scale=alt.Scale(zero=True), axis=alt.Axis(format=CURRENCY_AXIS, gridDash=[4, 4])),
            color=alt.Color("year:N", scale=alt.Scale(range=PALETTE), title="Year"),
            tooltip=["month", "year", alt.Tooltip("value:Q", format=CURRENCY_AXIS)],
        )
    )
    return to_vega_spec(chart)
