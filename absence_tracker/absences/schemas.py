"""Absence Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from absence_tracker.common.constants import AbsenceStatus


# ── Absence types ───────────────────────────────────────────────────

class AbsenceTypeCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=10, description="Short code, e.g. 'V'")
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#9ca3af", max_length=20)
    is_active: bool = True
    company_id: Optional[uuid.UUID] = None

    @field_validator("id", "name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class AbsenceTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None


class AbsenceTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    color: str
    is_active: bool
    company_id: Optional[uuid.UUID] = None


# ── Absence records ─────────────────────────────────────────────────

class AbsenceSet(BaseModel):
    """A calendar click: ``absence_type_id = null`` clears the day."""

    employee_id: uuid.UUID
    date: date
    absence_type_id: Optional[str] = None


class AbsenceStatusUpdate(BaseModel):
    status: AbsenceStatus


class AbsenceRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    absence_type_id: str
    date: date
    hours: Decimal
    status: AbsenceStatus
    created_at: datetime


# ── Calendar ────────────────────────────────────────────────────────

class CalendarRow(BaseModel):
    employee_id: uuid.UUID
    first_name: str
    last_name: str
    work_group: int
    absences: dict[date, str] = Field(default_factory=dict)


class AbsenceCalendar(BaseModel):
    year: int
    month: int
    days: list[date]
    types: list[AbsenceTypeOut]
    employees: list[CalendarRow]
