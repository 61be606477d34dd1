"""Core HR Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update → request bodies (write)
  - *Out              → response bodies (read)
  - *Brief            → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from absence_tracker.common.constants import DEFAULT_WORK_GROUP_ID


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class CompanyBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class DepartmentBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class WorkGroupBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_time: time
    end_time: time


# ═════════════════════════════════════════════════════════════════════
# Company
# ═════════════════════════════════════════════════════════════════════


class CompanyCreate(BaseModel):
    name: str = Field(..., max_length=150)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None

    check_name = field_validator("name")(_strip_required)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=150)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None


class CompanyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    company_id: uuid.UUID
    name: str = Field(..., max_length=150)
    description: Optional[str] = None

    check_name = field_validator("name")(_strip_required)


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=150)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    company: Optional[CompanyBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Work Group
# ═════════════════════════════════════════════════════════════════════


class WorkGroupCreate(BaseModel):
    """Payload for a work group. Times are wall-clock ``HH:MM``."""

    name: str = Field(..., max_length=100)
    start_time: time = Field(default=time(7, 0))
    end_time: time = Field(default=time(15, 0))
    has_rest_day: bool = False
    company_id: Optional[uuid.UUID] = None

    check_name = field_validator("name")(_strip_required)

    @model_validator(mode="after")
    def validate_times(self) -> "WorkGroupCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time.")
        return self


class WorkGroupUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    has_rest_day: Optional[bool] = None


class WorkGroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_time: time
    end_time: time
    has_rest_day: bool = False
    company_id: Optional[uuid.UUID] = None


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: EmailStr
    work_group: int = Field(default=DEFAULT_WORK_GROUP_ID, ge=1)
    company_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None

    check_names = field_validator("first_name", "last_name")(_strip_required)


class EmployeeUpdate(BaseModel):
    """Partial update. ``department_id`` may be sent as ``null`` to clear it."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    work_group: Optional[int] = Field(None, ge=1)
    company_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    first_name: str
    last_name: str
    email: str
    work_group: int
    company_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class EmployeeDetail(EmployeeOut):
    """Employee with resolved company, department and work group."""

    company: Optional[CompanyBrief] = None
    department: Optional[DepartmentBrief] = None
    work_group_details: Optional[WorkGroupBrief] = None
