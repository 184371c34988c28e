from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from campaign_core.charts import comparison_bar_chart, performance_radar_chart, to_vega_spec
from campaign_core.data import Dataset
from campaign_core.options import DashboardOptions
from campaign_core.state import category_series, department_summary, summary_cards


def compute_overview(options: DashboardOptions, ctx: Dict[str, Any]) -> Dict[str, Any]:
    dataset: Dataset = ctx.get("dataset", Dataset())
    view: Dataset = ctx.get("view", dataset)
    frame: pd.DataFrame = ctx.get("frame", pd.DataFrame())

    summary = department_summary(dataset, options.summary_index)
    charts: Dict[str, Any] = {}
    if not frame.empty:
        charts = {
            "comparison": to_vega_spec(comparison_bar_chart(frame, height=options.chart_height)),
            "radar": to_vega_spec(performance_radar_chart(frame, height=options.chart_height)),
        }

    return {
        "options": asdict(options),
        "has_data": not view.is_empty,
        "summary": {
            **asdict(summary),
            "cards": summary_cards(summary, options.numerals),
        },
        "labels": list(view.labels),
        "series": category_series(view),
        "charts": charts,
    }
