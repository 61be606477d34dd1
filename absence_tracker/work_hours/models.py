"""Work hours ORM models: WorkHoursEntry, MonthlyHoursSummary."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from absence_tracker.database import Base, utcnow

if TYPE_CHECKING:
    from absence_tracker.core_hr.models import Employee


class WorkHoursEntry(Base):
    """Hours an employee worked on one day, as typed (``7:30``) and as decimal."""

    __tablename__ = "work_hours"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "work_date", name="uq_work_hours_employee_date"),
        sa.CheckConstraint("hours_worked >= 0", name="ck_work_hours_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    hours_input: Mapped[str] = mapped_column(sa.String(10), nullable=False)
    hours_worked: Mapped[Decimal] = mapped_column(sa.Numeric(5, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow,
        server_default=sa.func.now(),
    )

    employee: Mapped[Employee] = relationship(back_populates="work_hours")


class MonthlyHoursSummary(Base):
    """Per-month split of worked hours into normal, redistribution and overtime."""

    __tablename__ = "monthly_hours_summary"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", "month", name="uq_monthly_summary"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    total_normal_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(7, 2), nullable=False, default=Decimal("0"), server_default=sa.text("0"),
    )
    total_redistribution_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(7, 2), nullable=False, default=Decimal("0"), server_default=sa.text("0"),
    )
    total_overtime_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(7, 2), nullable=False, default=Decimal("0"), server_default=sa.text("0"),
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, onupdate=utcnow,
        server_default=sa.func.now(),
    )

    employee: Mapped[Employee] = relationship(back_populates="monthly_summaries")
