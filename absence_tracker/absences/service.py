"""Absence service layer — absence types, per-day absence records and the
month calendar.

One absence record exists per (employee, date). Setting a type on a day
replaces whatever was there; clearing it deletes the row.
"""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.absences.models import AbsenceRecord, AbsenceType
from absence_tracker.absences.schemas import (
    AbsenceCalendar,
    AbsenceTypeCreate,
    AbsenceTypeOut,
    AbsenceTypeUpdate,
    CalendarRow,
)
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.audit import create_audit_entry
from absence_tracker.common.constants import DEFAULT_ABSENCE_HOURS, AbsenceStatus
from absence_tracker.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from absence_tracker.common.filters import apply_filters, apply_search
from absence_tracker.core_hr.models import Employee
from absence_tracker.core_hr.service import EmployeeService

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    if not 1 <= month <= 12:
        raise ValidationException({"month": ["Month must be between 1 and 12."]})
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _record_snapshot(record: AbsenceRecord) -> dict:
    return {
        "absence_type_id": record.absence_type_id,
        "hours": str(record.hours),
        "status": AbsenceStatus(record.status).value,
    }


class AbsenceService:
    """Async operations for absence types and records."""

    # ── Types ───────────────────────────────────────────────────────

    @staticmethod
    async def list_types(
        db: AsyncSession,
        *,
        include_inactive: bool = False,
        company_id: Optional[uuid.UUID] = None,
    ) -> list[AbsenceType]:
        query = select(AbsenceType).order_by(AbsenceType.name)
        if not include_inactive:
            query = query.where(AbsenceType.is_active.is_(True))
        if company_id is not None:
            query = query.where(
                (AbsenceType.company_id == company_id) | AbsenceType.company_id.is_(None)
            )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_type(db: AsyncSession, type_id: str) -> AbsenceType:
        absence_type = await db.get(AbsenceType, type_id)
        if absence_type is None:
            raise NotFoundException("AbsenceType", type_id)
        return absence_type

    @staticmethod
    async def create_type(
        db: AsyncSession,
        data: AbsenceTypeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AbsenceType:
        if await db.get(AbsenceType, data.id) is not None:
            raise ConflictError("id", data.id)

        absence_type = AbsenceType(**data.model_dump())
        db.add(absence_type)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="absence_type",
            entity_id=absence_type.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Created absence type %s (%s)", absence_type.id, absence_type.name)
        return absence_type

    @staticmethod
    async def update_type(
        db: AsyncSession,
        type_id: str,
        data: AbsenceTypeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AbsenceType:
        absence_type = await AbsenceService.get_type(db, type_id)
        changes = data.model_dump(exclude_unset=True)
        old_values = {k: getattr(absence_type, k) for k in changes}
        for field, value in changes.items():
            setattr(absence_type, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="absence_type",
            entity_id=absence_type.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=changes,
        )
        return absence_type

    # ── Records ─────────────────────────────────────────────────────

    @staticmethod
    async def list_records(
        db: AsyncSession,
        *,
        employee_id: Optional[uuid.UUID] = None,
        company_id: Optional[uuid.UUID] = None,
        status: Optional[AbsenceStatus] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[AbsenceRecord]:
        """Absence records filtered by employee, company, status and
        inclusive date range, oldest first."""
        query = select(AbsenceRecord).order_by(AbsenceRecord.date, AbsenceRecord.employee_id)
        query = apply_filters(
            query,
            AbsenceRecord,
            {
                "employee_id": employee_id,
                "status": status,
                "date__from": from_date,
                "date__to": to_date,
            },
        )
        if company_id is not None:
            query = query.join(Employee, AbsenceRecord.employee_id == Employee.id).where(
                Employee.company_id == company_id
            )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_record(db: AsyncSession, record_id: uuid.UUID) -> AbsenceRecord:
        record = await db.get(AbsenceRecord, record_id)
        if record is None:
            raise NotFoundException("AbsenceRecord", str(record_id))
        return record

    @staticmethod
    async def set_absence(
        db: AsyncSession,
        ctx: SessionContext,
        employee_id: uuid.UUID,
        day: date,
        absence_type_id: Optional[str],
    ) -> Optional[AbsenceRecord]:
        """Mark *day* for the employee with an absence type, or clear it.

        Setting a type upserts an approved full-day record keyed on
        (employee, date). ``None`` deletes the record if there is one.
        Returns the record, or ``None`` after clearing.
        """
        await EmployeeService.get_employee(db, employee_id, ctx)

        result = await db.execute(
            select(AbsenceRecord).where(
                AbsenceRecord.employee_id == employee_id,
                AbsenceRecord.date == day,
            )
        )
        record = result.scalars().first()

        if absence_type_id is None:
            if record is None:
                return None
            old_values = _record_snapshot(record)
            record_id = record.id
            await db.delete(record)
            await db.flush()
            await create_audit_entry(
                db,
                action="delete",
                entity_type="absence_record",
                entity_id=record_id,
                actor_id=ctx.user_id,
                old_values={**old_values, "date": day.isoformat()},
            )
            logger.info("Cleared absence of %s on %s", employee_id, day)
            return None

        absence_type = await AbsenceService.get_type(db, absence_type_id)
        if not absence_type.is_active:
            raise ValidationException(
                {"absence_type_id": [f"Absence type '{absence_type_id}' is not active."]}
            )

        if record is None:
            action, old_values = "create", None
            record = AbsenceRecord(employee_id=employee_id, date=day)
            db.add(record)
        else:
            action, old_values = "update", _record_snapshot(record)

        record.absence_type_id = absence_type_id
        record.hours = DEFAULT_ABSENCE_HOURS
        record.status = AbsenceStatus.approved
        await db.flush()

        await create_audit_entry(
            db,
            action=action,
            entity_type="absence_record",
            entity_id=record.id,
            actor_id=ctx.user_id,
            old_values=old_values,
            new_values={**_record_snapshot(record), "date": day.isoformat()},
        )
        logger.info("Set absence %s for %s on %s", absence_type_id, employee_id, day)
        return record

    @staticmethod
    async def update_status(
        db: AsyncSession,
        record_id: uuid.UUID,
        status: AbsenceStatus,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AbsenceRecord:
        """Approve or reject an absence record."""
        record = await AbsenceService.get_record(db, record_id)
        old_status = AbsenceStatus(record.status)
        record.status = status
        await db.flush()

        await create_audit_entry(
            db,
            action="status_change",
            entity_type="absence_record",
            entity_id=record.id,
            actor_id=actor_id,
            old_values={"status": old_status.value},
            new_values={"status": status.value},
        )
        return record

    # ── Calendar ────────────────────────────────────────────────────

    @staticmethod
    async def get_calendar(
        db: AsyncSession,
        year: int,
        month: int,
        *,
        company_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> AbsenceCalendar:
        """Every matching employee with their ``date → type`` map for a month."""
        first, last = month_bounds(year, month)

        emp_query = select(Employee).order_by(Employee.first_name, Employee.last_name)
        emp_query = apply_filters(emp_query, Employee, {"company_id": company_id})
        emp_query = apply_search(
            emp_query, search, [Employee.first_name, Employee.last_name],
        )
        employees = list((await db.execute(emp_query)).scalars().all())

        records = await AbsenceService.list_records(
            db, company_id=company_id, from_date=first, to_date=last,
        )
        by_employee: dict[uuid.UUID, dict[date, str]] = {}
        for record in records:
            by_employee.setdefault(record.employee_id, {})[record.date] = record.absence_type_id

        types = await AbsenceService.list_types(db, company_id=company_id)

        return AbsenceCalendar(
            year=year,
            month=month,
            days=[first + timedelta(days=i) for i in range((last - first).days + 1)],
            types=[AbsenceTypeOut.model_validate(t) for t in types],
            employees=[
                CalendarRow(
                    employee_id=emp.id,
                    first_name=emp.first_name,
                    last_name=emp.last_name,
                    work_group=emp.work_group,
                    absences=by_employee.get(emp.id, {}),
                )
                for emp in employees
            ],
        )
