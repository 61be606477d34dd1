"""Absence ORM models: AbsenceType, AbsenceRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from absence_tracker.common.constants import DEFAULT_ABSENCE_HOURS, AbsenceStatus
from absence_tracker.database import Base, utcnow

if TYPE_CHECKING:
    from absence_tracker.core_hr.models import Employee


class AbsenceType(Base):
    """Kind of absence, keyed by a short code such as ``V`` (vacation)."""

    __tablename__ = "absence_types"

    id: Mapped[str] = mapped_column(sa.String(10), primary_key=True)
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    color: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default="#9ca3af", server_default="#9ca3af",
    )
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean, server_default=sa.true(), default=True,
    )
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("companies.id"),
    )

    records: Mapped[list[AbsenceRecord]] = relationship(back_populates="absence_type")

    def __repr__(self) -> str:
        return f"<AbsenceType {self.id} {self.name!r}>"


class AbsenceRecord(Base):
    """One employee absent on one calendar day."""

    __tablename__ = "absence_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_absence_employee_date"),
        sa.Index("ix_absence_records_date", "date"),
        sa.CheckConstraint("hours >= 0", name="ck_absence_hours_non_negative"),
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
    absence_type_id: Mapped[str] = mapped_column(
        sa.String(10), sa.ForeignKey("absence_types.id"), nullable=False,
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), nullable=False, default=DEFAULT_ABSENCE_HOURS,
        server_default=sa.text("8"),
    )
    status: Mapped[AbsenceStatus] = mapped_column(
        sa.Enum(AbsenceStatus, name="absence_status"),
        nullable=False,
        default=AbsenceStatus.approved,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utcnow, server_default=sa.func.now(),
    )

    employee: Mapped[Employee] = relationship(back_populates="absence_records")
    absence_type: Mapped[AbsenceType] = relationship(back_populates="records")

    def __repr__(self) -> str:
        return f"<AbsenceRecord {self.employee_id} {self.date} {self.absence_type_id}>"
