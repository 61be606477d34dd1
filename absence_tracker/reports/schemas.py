"""Report schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from absence_tracker.common.constants import ReportKind


class ReportData(BaseModel):
    """A rendered report table: headings plus one dict per row."""

    id: ReportKind
    title: str
    description: str
    columns: list[str]
    rows: list[dict[str, Any]] = Field(default_factory=list)
