from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from campaign_core.charts import achieved_pie_chart, department_colors, target_polar_chart, to_vega_spec
from campaign_core.data import Dataset
from campaign_core.options import DashboardOptions


def _share(values: pd.Series) -> pd.Series:
    total = values.sum(skipna=True)
    if not total:
        return pd.Series([None] * len(values), index=values.index, dtype="float64")
    return values / total


def compute_distribution(options: DashboardOptions, ctx: Dict[str, Any]) -> Dict[str, Any]:
    view: Dataset = ctx.get("view", Dataset())
    frame: pd.DataFrame = ctx.get("frame", pd.DataFrame())

    shares = []
    charts: Dict[str, Any] = {}
    if not frame.empty:
        fills, borders = department_colors(frame["department"])
        table = frame[["department", "target", "achieved", "target_display", "achieved_display"]].copy()
        table["target_share"] = _share(table["target"])
        table["achieved_share"] = _share(table["achieved"])
        table["fill_color"] = fills
        table["border_color"] = borders
        shares = table.to_dict(orient="records")
        charts = {
            "target_polar": to_vega_spec(target_polar_chart(frame, height=options.chart_height)),
            "achieved_pie": to_vega_spec(achieved_pie_chart(frame, height=options.chart_height)),
        }

    return {
        "options": asdict(options),
        "has_data": not view.is_empty,
        "shares": shares,
        "charts": charts,
    }
