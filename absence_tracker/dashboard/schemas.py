"""Dashboard response schemas."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from absence_tracker.common.constants import SummaryPeriod
from absence_tracker.core_hr.schemas import EmployeeDetail


class TypeSummaryRow(BaseModel):
    absence_type_id: str
    name: str
    color: Optional[str] = None
    hours: float
    days: float
    percentage: float


class PeriodBreakdown(BaseModel):
    """Hours per absence type for one month (``YYYY-MM``) or year (``YYYY``)."""

    key: str
    hours: dict[str, float] = Field(default_factory=dict)
    total_hours: float = 0.0
    total_days: float = 0.0


class EmployeeSummary(BaseModel):
    employee: EmployeeDetail
    work_group_hours: Optional[float] = None
    period: SummaryPeriod
    reference: date
    period_label: str
    rows: list[TypeSummaryRow]
    total_hours: float
    total_days: float
    monthly: list[PeriodBreakdown]
    yearly: list[PeriodBreakdown]

