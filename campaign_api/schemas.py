from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class DashboardOptionsModel(BaseModel):
    selected_departments: List[str] = Field(default_factory=list)
    summary_index: int = 0
    numerals: Literal["arab", "latn"] = "arab"
    chart_height: int = 320


class RowIssueModel(BaseModel):
    line_number: int
    raw: str
    reason: str
    field: Optional[str] = None


class DatasetModel(BaseModel):
    labels: List[str]
    target: List[Optional[float]]
    achieved: List[Optional[float]]
    remaining: List[Optional[float]]


class StateResponse(BaseModel):
    source: str
    revision: int
    status: str
    rows: int
    issues: List[RowIssueModel] = Field(default_factory=list)
    dataset: Optional[DatasetModel] = None
