from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from campaign_core.data import SERIES_KEYS, Dataset
from campaign_core.options import DashboardOptions
from campaign_core.state import DashboardState


def compute_debug(options: DashboardOptions, ctx: Dict[str, Any]) -> Dict[str, Any]:
    state: DashboardState = ctx.get("state", DashboardState())
    dataset: Dataset = ctx.get("dataset", state.dataset)
    frame = dataset.to_frame()

    issues = [asdict(i) for i in state.issues]
    payload = {
        "options": asdict(options),
        "source": state.source,
        "revision": state.revision,
        "status": state.status,
        "row_counts": {
            "departments": int(len(dataset)),
            "view_departments": int(len(ctx.get("view", dataset))),
            "skipped_rows": len(issues),
        },
        "skipped_by_reason": {},
        "skipped_rows": issues,
        "nan_counts": {key: int(frame[key].isna().sum()) for key in SERIES_KEYS},
        "zero_target_departments": [],
        "remaining_mismatch": [],
    }
    if issues:
        payload["skipped_by_reason"] = pd.Series([i["reason"] for i in issues]).value_counts().to_dict()

    if not frame.empty:
        payload["zero_target_departments"] = frame.loc[frame["target"] == 0, "department"].tolist()
        # remaining is expected to be target - achieved; flag rows where the file disagrees
        gap = (frame["target"] - frame["achieved"] - frame["remaining"]).abs()
        mismatch = frame[gap > 0.5]
        payload["remaining_mismatch"] = mismatch[["department", "target", "achieved", "remaining"]].to_dict(orient="records")
    return payload
