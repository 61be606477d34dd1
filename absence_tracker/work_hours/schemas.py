"""Work hours Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class WorkHoursUpsert(BaseModel):
    employee_id: uuid.UUID
    work_date: date
    hours_input: str = Field(..., max_length=10, examples=["7:30"])


class WorkHoursOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    hours_input: str
    hours_worked: Decimal
    created_at: datetime
    updated_at: datetime


class MonthTotals(BaseModel):
    """Result of splitting a month's worked hours."""

    total_normal_hours: Decimal = Decimal("0")
    total_redistribution_hours: Decimal = Decimal("0")
    total_overtime_hours: Decimal = Decimal("0")


class MonthlySummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    year: int
    month: int
    total_normal_hours: Decimal
    total_redistribution_hours: Decimal
    total_overtime_hours: Decimal
    updated_at: datetime
