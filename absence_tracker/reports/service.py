"""Report service — fetches the rows a report needs and hands them to the
matching builder."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.absences.service import AbsenceService, month_bounds
from absence_tracker.common.constants import ReportKind
from absence_tracker.common.exceptions import ValidationException
from absence_tracker.core_hr.models import Department, Employee
from absence_tracker.core_hr.service import CompanyService
from absence_tracker.reports.builders import BUILDERS, ReportInput
from absence_tracker.reports.schemas import ReportData

logger = logging.getLogger(__name__)


class ReportService:

    @staticmethod
    async def generate(
        db: AsyncSession,
        kind: ReportKind,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        company_id: Optional[uuid.UUID] = None,
    ) -> ReportData:
        """Build report *kind* over ``[start, end]`` (default: current month).

        ``company-overview`` ignores the date range.
        """
        if start is None or end is None:
            today = date.today()
            first, last = month_bounds(today.year, today.month)
            start, end = start or first, end or last
        if end < start:
            raise ValidationException({"end": ["End date must not be before start date."]})

        emp_query = select(Employee).order_by(Employee.first_name, Employee.last_name)
        if company_id is not None:
            emp_query = emp_query.where(Employee.company_id == company_id)
        employees = list((await db.execute(emp_query)).scalars().all())

        departments = {
            d.id: d.name
            for d in (await db.execute(select(Department))).scalars().all()
        }
        absence_types = {
            t.id: t.name for t in await AbsenceService.list_types(db, include_inactive=True)
        }

        if kind == ReportKind.company_overview:
            records = await AbsenceService.list_records(db, company_id=company_id)
            companies = await CompanyService.list_companies(db)
            if company_id is not None:
                companies = [c for c in companies if c.id == company_id]
        else:
            records = await AbsenceService.list_records(
                db, company_id=company_id, from_date=start, to_date=end,
            )
            companies = []

        logger.info(
            "Building report %s for %s..%s (company=%s, %d records)",
            kind.value, start, end, company_id, len(records),
        )
        return BUILDERS[kind](
            ReportInput(
                employees=employees,
                records=records,
                companies=companies,
                departments=departments,
                absence_types=absence_types,
                period=f"{start.isoformat()} to {end.isoformat()}",
            )
        )
