"""Core HR ORM models: Company, Department, WorkGroup, Employee.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
Column names match the PostgreSQL schema defined in 001_initial_schema.
"""

from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from absence_tracker.database import Base, utcnow

if TYPE_CHECKING:
    from absence_tracker.absences.models import AbsenceRecord
    from absence_tracker.work_hours.models import MonthlyHoursSummary, WorkHoursEntry


# ═════════════════════════════════════════════════════════════════════
# Company
# ═════════════════════════════════════════════════════════════════════


class Company(Base):
    """Employer; every employee, department and absence type belongs to one."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(150), unique=True, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(50))
    email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, server_default=sa.true(), default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow,
        server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    departments: Mapped[list[Department]] = relationship(back_populates="company")
    employees: Mapped[list[Employee]] = relationship(back_populates="company")

    def __repr__(self) -> str:
        return f"<Company {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(Base):
    """Organisational unit inside a company."""

    __tablename__ = "departments"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "name", name="uq_dept_company_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"), nullable=False,
    )
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, server_default=sa.true(), default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow,
        server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    company: Mapped[Company] = relationship(back_populates="departments")
    employees: Mapped[list[Employee]] = relationship(back_populates="department")

    def __repr__(self) -> str:
        return f"<Department {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# WorkGroup
# ═════════════════════════════════════════════════════════════════════


class WorkGroup(Base):
    """Shift pattern shared by a set of employees (e.g. 07:00–15:00)."""

    __tablename__ = "work_groups"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    start_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    end_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    has_rest_day: Mapped[bool] = mapped_column(
        sa.Boolean, server_default=sa.false(), default=False,
    )
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )

    # ── Relationships ───────────────────────────────────────────────
    employees: Mapped[list[Employee]] = relationship(back_populates="work_group_details")

    def __repr__(self) -> str:
        return f"<WorkGroup {self.id} {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """Employee record. ``user_id`` links to the auth provider's subject,
    and is empty for employees created by an admin without a login."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), unique=True,
    )
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    work_group: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("work_groups.id"), nullable=False,
    )
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow,
        server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    company: Mapped[Optional[Company]] = relationship(back_populates="employees")
    department: Mapped[Optional[Department]] = relationship(back_populates="employees")
    work_group_details: Mapped[Optional[WorkGroup]] = relationship(
        back_populates="employees",
    )
    absence_records: Mapped[list[AbsenceRecord]] = relationship(
        back_populates="employee", passive_deletes=True,
    )
    work_hours: Mapped[list[WorkHoursEntry]] = relationship(
        back_populates="employee", passive_deletes=True,
    )
    monthly_summaries: Mapped[list[MonthlyHoursSummary]] = relationship(
        back_populates="employee", passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee {self.full_name!r}>"
