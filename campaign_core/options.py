from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class IngestSettings:
    header_rows: int = 2
    delimiter: str = ";"
    min_fields: int = 4
    strict_numbers: bool = True
    keep_previous_on_empty: bool = True


@dataclass(frozen=True)
class DashboardOptions:
    selected_departments: List[str] = field(default_factory=list)
    summary_index: int = 0
    numerals: str = "arab"
    chart_height: int = 320


NUMERAL_SYSTEMS = ("arab", "latn")


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    return [str(v) for v in values if v is not None and str(v) != ""]


def normalize_options(raw: dict, *, available_departments: Optional[List[str]] = None) -> DashboardOptions:
    selected = _as_str_list(raw.get("selected_departments"))
    if available_departments is not None:
        known = set(available_departments)
        selected = [d for d in selected if d in known]

    summary_index = raw.get("summary_index", 0)
    try:
        summary_index = int(summary_index)
    except Exception:
        summary_index = 0
    summary_index = max(0, summary_index)

    numerals = str(raw.get("numerals") or "arab").lower()
    if numerals not in NUMERAL_SYSTEMS:
        numerals = "arab"

    chart_height = raw.get("chart_height", 320)
    try:
        chart_height = int(chart_height)
    except Exception:
        chart_height = 320
    chart_height = max(160, min(1200, chart_height))

    return DashboardOptions(
        selected_departments=selected,
        summary_index=summary_index,
        numerals=numerals,
        chart_height=chart_height,
    )


def normalize_ingest_settings(raw: Optional[dict]) -> IngestSettings:
    raw = raw or {}
    defaults = IngestSettings()
    header_rows = raw.get("header_rows", defaults.header_rows)
    min_fields = raw.get("min_fields", defaults.min_fields)
    try:
        header_rows = max(0, int(header_rows))
    except Exception:
        header_rows = defaults.header_rows
    try:
        min_fields = max(4, int(min_fields))
    except Exception:
        min_fields = defaults.min_fields
    delimiter = raw.get("delimiter") or defaults.delimiter
    return IngestSettings(
        header_rows=header_rows,
        delimiter=str(delimiter),
        min_fields=min_fields,
        strict_numbers=bool(raw.get("strict_numbers", defaults.strict_numbers)),
        keep_previous_on_empty=bool(raw.get("keep_previous_on_empty", defaults.keep_previous_on_empty)),
    )
