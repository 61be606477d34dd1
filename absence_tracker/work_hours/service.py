"""Work hours service layer — daily hour entries and monthly summaries.

Hours are typed the way people write them on a timesheet (``8``, ``7:30``)
and stored both verbatim and as a decimal. Every write recomputes the
employee's summary row for that month: per day the first 8 hours are
normal time, the next ``REDISTRIBUTION_CAP_HOURS`` are redistribution
hours and anything beyond is overtime.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.absences.service import month_bounds
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.audit import create_audit_entry
from absence_tracker.common.constants import STANDARD_DAY_HOURS
from absence_tracker.common.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from absence_tracker.config import settings
from absence_tracker.core_hr.service import EmployeeService
from absence_tracker.work_hours.models import MonthlyHoursSummary, WorkHoursEntry
from absence_tracker.work_hours.schemas import MonthTotals

logger = logging.getLogger(__name__)

_HOURS_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*$")
_TWO_PLACES = Decimal("0.01")


def parse_hours_input(value: str) -> Decimal:
    """Convert ``H``, ``HH`` or ``H:MM`` into decimal hours (2 places).

    >>> parse_hours_input("7:30")
    Decimal('7.50')
    """
    match = _HOURS_RE.match(value or "")
    if match is None:
        logger.warning("Rejected hours input %r", value)
        raise ValidationException(
            {"hours_input": ["Use the format H, HH or H:MM (e.g. 8 or 7:30)."]}
        )

    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if minutes > 59:
        raise ValidationException({"hours_input": ["Minutes must be between 0 and 59."]})
    if hours > 24 or (hours == 24 and minutes):
        raise ValidationException({"hours_input": ["A day has at most 24 hours."]})

    total = Decimal(hours) + Decimal(minutes) / 60
    return total.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def summarize_month(
    entries: Iterable[Any],
    redistribution_cap: Optional[Decimal] = None,
) -> MonthTotals:
    """Split worked hours into normal / redistribution / overtime totals.

    *entries* need ``work_date`` and ``hours_worked``; entries on the same
    day are added up before the split. The split is a payroll policy:
    up to ``STANDARD_DAY_HOURS`` a day is normal time, the next
    ``REDISTRIBUTION_CAP_HOURS`` (a setting, overridable per call) are
    redistribution hours, anything beyond is overtime.
    """
    cap = settings.REDISTRIBUTION_CAP_HOURS if redistribution_cap is None else redistribution_cap

    per_day: dict[date, Decimal] = {}
    for entry in entries:
        per_day[entry.work_date] = per_day.get(entry.work_date, Decimal("0")) + Decimal(
            str(entry.hours_worked)
        )

    totals = MonthTotals()
    for hours in per_day.values():
        normal = min(hours, STANDARD_DAY_HOURS)
        redistribution = min(hours - normal, cap)
        overtime = hours - normal - redistribution
        totals.total_normal_hours += normal
        totals.total_redistribution_hours += redistribution
        totals.total_overtime_hours += overtime
    return totals


class WorkHoursService:
    """Async operations for work hour entries and monthly summaries."""

    @staticmethod
    async def _check_access(
        db: AsyncSession,
        ctx: SessionContext,
        employee_id: uuid.UUID,
        *,
        write: bool = False,
    ) -> None:
        """Admins reach everybody; users only their own hours."""
        scope = "write" if write else "read"
        if ctx.has_permission(f"work_hours:{scope}_all"):
            await EmployeeService.get_employee(db, employee_id)
            return
        if ctx.has_permission(f"work_hours:{scope}_own") and ctx.employee_id == employee_id:
            return
        raise ForbiddenException(detail="You can only access your own work hours.")

    # ── Entries ─────────────────────────────────────────────────────

    @staticmethod
    async def list_entries(
        db: AsyncSession,
        ctx: SessionContext,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> list[WorkHoursEntry]:
        await WorkHoursService._check_access(db, ctx, employee_id)
        first, last = month_bounds(year, month)
        result = await db.execute(
            select(WorkHoursEntry)
            .where(
                WorkHoursEntry.employee_id == employee_id,
                WorkHoursEntry.work_date >= first,
                WorkHoursEntry.work_date <= last,
            )
            .order_by(WorkHoursEntry.work_date)
        )
        return list(result.scalars().all())

    @staticmethod
    async def upsert_entry(
        db: AsyncSession,
        ctx: SessionContext,
        employee_id: uuid.UUID,
        work_date: date,
        hours_input: str,
    ) -> WorkHoursEntry:
        """Store the hours for one day, replacing an earlier entry."""
        await WorkHoursService._check_access(db, ctx, employee_id, write=True)
        hours_worked = parse_hours_input(hours_input)

        result = await db.execute(
            select(WorkHoursEntry).where(
                WorkHoursEntry.employee_id == employee_id,
                WorkHoursEntry.work_date == work_date,
            )
        )
        entry = result.scalars().first()

        if entry is None:
            action, old_values = "create", None
            entry = WorkHoursEntry(employee_id=employee_id, work_date=work_date)
            db.add(entry)
        else:
            action = "update"
            old_values = {"hours_input": entry.hours_input, "hours_worked": str(entry.hours_worked)}

        entry.hours_input = hours_input.strip()
        entry.hours_worked = hours_worked
        await db.flush()

        await create_audit_entry(
            db,
            action=action,
            entity_type="work_hours",
            entity_id=entry.id,
            actor_id=ctx.user_id,
            old_values=old_values,
            new_values={
                "work_date": work_date.isoformat(),
                "hours_input": entry.hours_input,
                "hours_worked": str(hours_worked),
            },
        )
        await WorkHoursService.recompute_monthly_summary(
            db, employee_id, work_date.year, work_date.month,
        )
        logger.info("Recorded %s h for %s on %s", hours_worked, employee_id, work_date)
        return entry

    @staticmethod
    async def delete_entry(
        db: AsyncSession,
        ctx: SessionContext,
        entry_id: uuid.UUID,
    ) -> None:
        entry = await db.get(WorkHoursEntry, entry_id)
        if entry is None:
            raise NotFoundException("WorkHoursEntry", str(entry_id))
        await WorkHoursService._check_access(db, ctx, entry.employee_id, write=True)

        employee_id, work_date = entry.employee_id, entry.work_date
        old_values = {
            "work_date": work_date.isoformat(),
            "hours_input": entry.hours_input,
            "hours_worked": str(entry.hours_worked),
        }
        await db.delete(entry)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="work_hours",
            entity_id=entry_id,
            actor_id=ctx.user_id,
            old_values=old_values,
        )
        await WorkHoursService.recompute_monthly_summary(
            db, employee_id, work_date.year, work_date.month,
        )

    # ── Monthly summaries ───────────────────────────────────────────

    @staticmethod
    async def recompute_monthly_summary(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
        month: int,
    ) -> MonthlyHoursSummary:
        """Rebuild the summary row for one employee-month from its entries."""
        first, last = month_bounds(year, month)
        result = await db.execute(
            select(WorkHoursEntry).where(
                WorkHoursEntry.employee_id == employee_id,
                WorkHoursEntry.work_date >= first,
                WorkHoursEntry.work_date <= last,
            )
        )
        totals = summarize_month(result.scalars().all())

        summary_row = await db.execute(
            select(MonthlyHoursSummary).where(
                MonthlyHoursSummary.employee_id == employee_id,
                MonthlyHoursSummary.year == year,
                MonthlyHoursSummary.month == month,
            )
        )
        summary = summary_row.scalars().first()
        if summary is None:
            summary = MonthlyHoursSummary(employee_id=employee_id, year=year, month=month)
            db.add(summary)

        for field, value in totals.model_dump().items():
            setattr(summary, field, value)
        await db.flush()
        return summary

    @staticmethod
    async def get_monthly_summaries(
        db: AsyncSession,
        ctx: SessionContext,
        employee_id: uuid.UUID,
        year: Optional[int] = None,
    ) -> list[MonthlyHoursSummary]:
        """Summaries for an employee, newest month first."""
        await WorkHoursService._check_access(db, ctx, employee_id)
        query = (
            select(MonthlyHoursSummary)
            .where(MonthlyHoursSummary.employee_id == employee_id)
            .order_by(MonthlyHoursSummary.year.desc(), MonthlyHoursSummary.month.desc())
        )
        if year is not None:
            query = query.where(MonthlyHoursSummary.year == year)
        result = await db.execute(query)
        return list(result.scalars().all())
