"""Dashboard Data Model.

The current dataset lives in an explicit, immutable ``DashboardState``. Uploads
produce a new state through ``apply_upload``; nothing mutates a state in place.
Derived views are plain functions of a ``Dataset`` and are recomputed on every
call.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from campaign_core.data import (
    SERIES_KEYS,
    SERIES_STYLES,
    Dataset,
    RowIssue,
    achievement_ratio,
    default_dataset,
    format_number,
    format_percent,
    parse_campaign_text,
)
from campaign_core.options import DashboardOptions, IngestSettings, normalize_options


logger = logging.getLogger(__name__)

STATUS_DEFAULT = "default"
STATUS_LOADED = "loaded"
STATUS_EMPTY = "empty"
STATUS_REJECTED = "rejected"


@dataclass(frozen=True)
class DashboardState:
    dataset: Dataset = field(default_factory=default_dataset)
    source: str = "default"
    revision: int = 0
    status: str = STATUS_DEFAULT
    issues: Tuple[RowIssue, ...] = ()

    def describe(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "revision": self.revision,
            "status": self.status,
            "rows": len(self.dataset),
            "issues": [asdict(i) for i in self.issues],
        }


def initial_state() -> DashboardState:
    return DashboardState()


def apply_upload(
    state: DashboardState,
    text: str,
    *,
    source: str = "upload",
    settings: Optional[IngestSettings] = None,
) -> DashboardState:
    settings = settings or IngestSettings()
    result = parse_campaign_text(text, settings)
    if result.ok:
        logger.info("Loaded %d departments from %s (revision %d)", len(result.dataset), source, state.revision + 1)
        return DashboardState(
            dataset=result.dataset,
            source=source,
            revision=state.revision + 1,
            status=STATUS_LOADED,
            issues=result.issues,
        )
    if settings.keep_previous_on_empty:
        logger.warning("Upload %s produced no rows; keeping %s", source, state.source)
        return replace(state, status=STATUS_REJECTED, issues=result.issues)
    logger.warning("Upload %s produced no rows; dataset is now empty", source)
    return DashboardState(
        dataset=result.dataset,
        source=source,
        revision=state.revision + 1,
        status=STATUS_EMPTY,
        issues=result.issues,
    )


def reset_state(state: DashboardState) -> DashboardState:
    return DashboardState(revision=state.revision + 1)


def apply_upload_once(
    state: DashboardState,
    applied_id: Optional[str],
    upload_id: Optional[str],
    read_text: Callable[[], str],
    *,
    source: str = "upload",
    settings: Optional[IngestSettings] = None,
) -> Tuple[DashboardState, Optional[str]]:
    """Apply an upload unless ``upload_id`` is the one already applied.

    UI sessions keep the attached file across reruns; the caller stores the
    returned id and passes it back next time. Keeping that id through a reset
    means a still-attached file does not overwrite the defaults again.
    """
    if upload_id is None or upload_id == applied_id:
        return state, applied_id
    return apply_upload(state, read_text(), source=source, settings=settings), upload_id


class DashboardStore:
    """Process-wide holder for the current state. Last write wins."""

    def __init__(self, state: Optional[DashboardState] = None, settings: Optional[IngestSettings] = None):
        self._state = state or initial_state()
        self.settings = settings or IngestSettings()

    def current(self) -> DashboardState:
        return self._state

    def upload(self, text: str, source: str = "upload") -> DashboardState:
        self._state = apply_upload(self._state, text, source=source, settings=self.settings)
        return self._state

    def reset(self) -> DashboardState:
        self._state = reset_state(self._state)
        return self._state


# ---------------- Derived views ----------------
def achievement_percentages(dataset: Dataset) -> List[Optional[float]]:
    return [achievement_ratio(a, t) for a, t in zip(dataset.achieved, dataset.target)]


def category_series(dataset: Dataset) -> List[Dict[str, Any]]:
    out = []
    for key in SERIES_KEYS:
        style = SERIES_STYLES[key]
        out.append(
            {
                "key": key,
                "label": style["label"],
                "values": list(dataset.series(key)),
                "fill_color": style["fill"],
                "border_color": style["border"],
            }
        )
    return out


@dataclass(frozen=True)
class DepartmentSummary:
    has_data: bool = False
    department: Optional[str] = None
    target: Optional[float] = None
    achieved: Optional[float] = None
    remaining: Optional[float] = None
    achievement_pct: Optional[float] = None


def department_summary(dataset: Dataset, index: int = 0) -> DepartmentSummary:
    if index < 0 or index >= len(dataset):
        return DepartmentSummary()
    target = dataset.target[index]
    achieved = dataset.achieved[index]
    return DepartmentSummary(
        has_data=True,
        department=dataset.labels[index],
        target=target,
        achieved=achieved,
        remaining=dataset.remaining[index],
        achievement_pct=achievement_ratio(achieved, target),
    )


def summary_cards(summary: DepartmentSummary, numerals: str = "arab") -> List[Dict[str, Any]]:
    cards = []
    for key in SERIES_KEYS:
        value = getattr(summary, key)
        cards.append(
            {
                "key": key,
                "title": SERIES_STYLES[key]["label"],
                "value": value,
                "display": format_number(value, numerals),
            }
        )
    cards.append(
        {
            "key": "achievement_pct",
            "title": SERIES_STYLES["achievement_pct"]["label"],
            "value": summary.achievement_pct,
            "display": format_percent(summary.achievement_pct),
        }
    )
    return cards


def prepare_context(options: dict | DashboardOptions, state: DashboardState) -> Dict[str, Any]:
    dataset = state.dataset
    opts = (
        options
        if isinstance(options, DashboardOptions)
        else normalize_options(options, available_departments=list(dataset.labels))
    )
    view = dataset.subset(opts.selected_departments) if opts.selected_departments else dataset
    frame = view.to_frame()
    for key in SERIES_KEYS:
        frame[f"{key}_display"] = frame[key].apply(lambda v: format_number(v, opts.numerals))
    frame["achievement_pct_display"] = frame["achievement_pct"].apply(format_percent)
    return {
        "options": opts,
        "state": state,
        "dataset": dataset,
        "view": view,
        "frame": frame,
    }
