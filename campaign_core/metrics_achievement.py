from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from campaign_core.charts import achievement_doughnut_chart, achievement_line_chart, to_vega_spec
from campaign_core.data import SERIES_STYLES, Dataset
from campaign_core.options import DashboardOptions
from campaign_core.state import achievement_percentages


def compute_achievement(options: DashboardOptions, ctx: Dict[str, Any]) -> Dict[str, Any]:
    view: Dataset = ctx.get("view", Dataset())
    frame: pd.DataFrame = ctx.get("frame", pd.DataFrame())

    rows = []
    if not frame.empty:
        rows = frame[["department", "achievement_pct", "achievement_pct_display"]].to_dict(orient="records")

    charts: Dict[str, Any] = {}
    if not frame.empty and frame["achievement_pct"].notna().any():
        charts = {
            "doughnut": to_vega_spec(achievement_doughnut_chart(frame, height=options.chart_height)),
            "trend": to_vega_spec(achievement_line_chart(frame, height=options.chart_height)),
        }

    style = SERIES_STYLES["achievement_pct"]
    return {
        "options": asdict(options),
        "has_data": not view.is_empty,
        "series": {
            "label": style["label"],
            "values": achievement_percentages(view),
            "fill_color": style["fill"],
            "border_color": style["border"],
        },
        "rows": rows,
        "charts": charts,
    }
