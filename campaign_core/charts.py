from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Tuple

import altair as alt
import pandas as pd

from campaign_core.data import DEPARTMENT_PALETTE, SERIES_KEYS, SERIES_STYLES

alt.data_transformers.disable_max_rows()

GRID_COLOR = "rgba(255, 255, 255, 0.1)"
TEXT_COLOR = "#fff"


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def department_colors(departments: Iterable[str]) -> Tuple[List[str], List[str]]:
    fills, borders = [], []
    for i, _ in enumerate(departments):
        fill, border = DEPARTMENT_PALETTE[i % len(DEPARTMENT_PALETTE)]
        fills.append(fill)
        borders.append(border)
    return fills, borders


def _series_scale(keys: Iterable[str] = SERIES_KEYS, attr: str = "fill") -> alt.Scale:
    keys = list(keys)
    return alt.Scale(
        domain=[SERIES_STYLES[k]["label"] for k in keys],
        range=[SERIES_STYLES[k][attr] for k in keys],
    )


def _department_scale(departments: List[str]) -> alt.Scale:
    fills, _ = department_colors(departments)
    return alt.Scale(domain=departments, range=fills)


def long_series_frame(frame: pd.DataFrame, keys: Iterable[str] = SERIES_KEYS) -> pd.DataFrame:
    """Stack the per-series columns into department/series/value rows."""
    parts = []
    for key in keys:
        part = frame[["department", key, f"{key}_display"]].rename(
            columns={key: "value", f"{key}_display": "value_display"}
        )
        parts.append(part.assign(series=SERIES_STYLES[key]["label"], series_key=key))
    if not parts:
        return pd.DataFrame(columns=["department", "value", "value_display", "series", "series_key"])
    return pd.concat(parts, ignore_index=True)


# ---------------- Builders ----------------
def comparison_bar_chart(frame: pd.DataFrame, height: int = 320) -> alt.Chart:
    departments = frame["department"].tolist()
    long = long_series_frame(frame)
    return (
        alt.Chart(long)
        .mark_bar(strokeWidth=1)
        .encode(
            x=alt.X("department:N", sort=departments, title=None, axis=alt.Axis(labelAngle=0, labelLimit=140)),
            xOffset=alt.XOffset("series:N", sort=[SERIES_STYLES[k]["label"] for k in SERIES_KEYS]),
            y=alt.Y("value:Q", title=None, axis=alt.Axis(format="~s", gridColor=GRID_COLOR)),
            color=alt.Color("series:N", scale=_series_scale(), legend=alt.Legend(orient="top", title=None)),
            stroke=alt.Stroke("series:N", scale=_series_scale(attr="border"), legend=None),
            tooltip=[
                alt.Tooltip("department:N"),
                alt.Tooltip("series:N"),
                alt.Tooltip("value_display:N", title="value"),
            ],
        )
        .properties(height=height)
    )


def achievement_doughnut_chart(frame: pd.DataFrame, height: int = 320) -> alt.Chart:
    data = frame.dropna(subset=["achievement_pct"])
    departments = data["department"].tolist()
    return (
        alt.Chart(data)
        .mark_arc(innerRadius=height // 5, stroke=SERIES_STYLES["achievement_pct"]["border"], strokeWidth=1)
        .encode(
            theta=alt.Theta("achievement_pct:Q"),
            color=alt.Color("department:N", sort=departments, scale=_department_scale(departments), legend=alt.Legend(orient="top", title=None)),
            tooltip=[
                alt.Tooltip("department:N"),
                alt.Tooltip("achievement_pct_display:N", title=SERIES_STYLES["achievement_pct"]["label"]),
            ],
        )
        .properties(height=height)
    )


def achievement_line_chart(frame: pd.DataFrame, height: int = 320) -> alt.Chart:
    style = SERIES_STYLES["achievement_pct"]
    departments = frame["department"].tolist()
    return (
        alt.Chart(frame.dropna(subset=["achievement_pct"]))
        .mark_area(
            color=style["fill"],
            line={"color": style["border"]},
            point={"color": style["border"], "filled": True, "size": 60},
        )
        .encode(
            x=alt.X("department:N", sort=departments, title=None, axis=alt.Axis(labelAngle=0, labelLimit=140)),
            y=alt.Y("achievement_pct:Q", title=style["label"], axis=alt.Axis(gridColor=GRID_COLOR)),
            tooltip=[
                alt.Tooltip("department:N"),
                alt.Tooltip("achievement_pct_display:N", title=style["label"]),
            ],
        )
        .properties(height=height)
    )


def target_polar_chart(frame: pd.DataFrame, height: int = 320) -> alt.Chart:
    departments = frame["department"].tolist()
    data = frame.assign(slice=1.0)
    return (
        alt.Chart(data)
        .mark_arc(stroke=GRID_COLOR, strokeWidth=1)
        .encode(
            theta=alt.Theta("slice:Q", stack=True),
            radius=alt.Radius("target:Q", scale=alt.Scale(type="sqrt", zero=True, rangeMin=20)),
            color=alt.Color("department:N", sort=departments, scale=_department_scale(departments), legend=alt.Legend(orient="top", title=None)),
            tooltip=[
                alt.Tooltip("department:N"),
                alt.Tooltip("target_display:N", title=SERIES_STYLES["target"]["label"]),
            ],
        )
        .properties(height=height)
    )


def achieved_pie_chart(frame: pd.DataFrame, height: int = 320) -> alt.Chart:
    departments = frame["department"].tolist()
    return (
        alt.Chart(frame.dropna(subset=["achieved"]))
        .mark_arc(stroke=GRID_COLOR, strokeWidth=1)
        .encode(
            theta=alt.Theta("achieved:Q"),
            color=alt.Color("department:N", sort=departments, scale=_department_scale(departments), legend=alt.Legend(orient="top", title=None)),
            tooltip=[
                alt.Tooltip("department:N"),
                alt.Tooltip("achieved_display:N", title=SERIES_STYLES["achieved"]["label"]),
            ],
        )
        .properties(height=height)
    )


def _spoke_angle(i: int, n: int) -> float:
    # first spoke points up, then clockwise
    return math.pi / 2 - 2 * math.pi * i / n


def radar_points(frame: pd.DataFrame, keys: Iterable[str] = SERIES_KEYS) -> pd.DataFrame:
    """Closed polygon vertices per series, radius normalized to the largest value."""
    keys = list(keys)
    columns = ["series", "series_key", "department", "order", "x", "y", "value_display"]
    n = len(frame)
    peak = frame[keys].abs().max().max() if n else None
    if not n or peak is None or pd.isna(peak) or peak == 0:
        return pd.DataFrame(columns=columns)
    rows = []
    for key in keys:
        for order, i in enumerate(list(range(n)) + [0]):
            value = frame[key].iloc[i]
            r = 0.0 if pd.isna(value) else float(value) / float(peak)
            angle = _spoke_angle(i, n)
            rows.append(
                {
                    "series": SERIES_STYLES[key]["label"],
                    "series_key": key,
                    "department": frame["department"].iloc[i],
                    "order": order,
                    "x": r * math.cos(angle),
                    "y": r * math.sin(angle),
                    "value_display": frame[f"{key}_display"].iloc[i],
                }
            )
    return pd.DataFrame(rows, columns=columns)


def performance_radar_chart(frame: pd.DataFrame, height: int = 320) -> alt.LayerChart:
    n = len(frame)
    spokes = pd.DataFrame(
        [
            {"spoke": i, "end": end, "x": end * math.cos(_spoke_angle(i, n)), "y": end * math.sin(_spoke_angle(i, n))}
            for i in range(n)
            for end in (0.0, 1.0)
        ]
    )
    labels = pd.DataFrame(
        [
            {"department": d, "x": 1.15 * math.cos(_spoke_angle(i, n)), "y": 1.15 * math.sin(_spoke_angle(i, n))}
            for i, d in enumerate(frame["department"].tolist())
        ]
    )
    x = alt.X("x:Q", axis=None, scale=alt.Scale(domain=[-1.35, 1.35]))
    y = alt.Y("y:Q", axis=None, scale=alt.Scale(domain=[-1.35, 1.35]))

    spoke_layer = alt.Chart(spokes).mark_line(color=GRID_COLOR).encode(x=x, y=y, detail="spoke:N", order="end:Q")
    label_layer = alt.Chart(labels).mark_text(color=TEXT_COLOR, fontSize=12).encode(x=x, y=y, text="department:N")
    polygon_layer = (
        alt.Chart(radar_points(frame))
        .mark_line(point=True, strokeWidth=2)
        .encode(
            x=x,
            y=y,
            color=alt.Color("series:N", scale=_series_scale(attr="border"), legend=alt.Legend(orient="top", title=None)),
            order="order:Q",
            tooltip=[
                alt.Tooltip("department:N"),
                alt.Tooltip("series:N"),
                alt.Tooltip("value_display:N", title="value"),
            ],
        )
    )
    return alt.layer(spoke_layer, label_layer, polygon_layer).properties(height=height, width=height)
