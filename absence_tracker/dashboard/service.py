"""Employee absence summary — feeds stored records through the aggregator
and shapes the result for the summary screen."""

from __future__ import annotations

import calendar
import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.absences.aggregation import (
    AggregationResult,
    TypeHours,
    aggregate,
    compute_derived_metrics,
    months_of_year,
    select_period,
    sorted_years,
    to_days,
)
from absence_tracker.absences.models import AbsenceType
from absence_tracker.absences.service import AbsenceService
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.constants import AbsenceStatus, SummaryPeriod
from absence_tracker.core_hr.schemas import EmployeeDetail
from absence_tracker.core_hr.service import EmployeeService, work_group_hours
from absence_tracker.dashboard.schemas import EmployeeSummary, PeriodBreakdown, TypeSummaryRow

logger = logging.getLogger(__name__)


def period_label(period: SummaryPeriod, reference: date) -> str:
    if period == SummaryPeriod.month:
        return f"{calendar.month_name[reference.month]} {reference.year}"
    if period == SummaryPeriod.year:
        return str(reference.year)
    return "All time"


def _breakdown(key: str, hours: TypeHours) -> PeriodBreakdown:
    metrics = compute_derived_metrics(hours)
    return PeriodBreakdown(
        key=key,
        hours={type_id: float(value) for type_id, value in hours.items()},
        total_hours=float(metrics.total_hours),
        total_days=float(metrics.total_days),
    )


def build_type_rows(
    period_data: TypeHours,
    types: dict[str, AbsenceType],
) -> list[TypeSummaryRow]:
    """One row per absence type in the period, most hours first.

    Types missing from *types* keep their id as display name.
    """
    metrics = compute_derived_metrics(period_data)
    rows = []
    for type_id, hours in period_data.items():
        absence_type = types.get(type_id)
        rows.append(
            TypeSummaryRow(
                absence_type_id=type_id,
                name=absence_type.name if absence_type else type_id,
                color=absence_type.color if absence_type else None,
                hours=float(hours),
                days=float(to_days(hours)),
                percentage=float(metrics.per_type_percentage[type_id]),
            )
        )
    rows.sort(key=lambda row: (-row.hours, row.absence_type_id))
    return rows


class DashboardService:

    @staticmethod
    async def employee_summary(
        db: AsyncSession,
        ctx: SessionContext,
        employee_id: uuid.UUID,
        period: SummaryPeriod = SummaryPeriod.month,
        reference: Optional[date] = None,
    ) -> EmployeeSummary:
        reference = reference or date.today()
        period = SummaryPeriod(period)
        employee = await EmployeeService.get_employee(db, employee_id, ctx)

        records = await AbsenceService.list_records(
            db, employee_id=employee_id, status=AbsenceStatus.approved,
        )
        types = {t.id: t for t in await AbsenceService.list_types(db)}

        result: AggregationResult = aggregate(records)
        period_data = select_period(result, period, reference)
        metrics = compute_derived_metrics(period_data)
        logger.debug(
            "Summary for %s over %s: %d records, %s h", employee_id, period.value,
            len(records), metrics.total_hours,
        )

        group = employee.work_group_details
        return EmployeeSummary(
            employee=EmployeeDetail.model_validate(employee),
            work_group_hours=(
                float(work_group_hours(group.start_time, group.end_time)) if group else None
            ),
            period=period,
            reference=reference,
            period_label=period_label(period, reference),
            rows=build_type_rows(period_data, types),
            total_hours=float(metrics.total_hours),
            total_days=float(metrics.total_days),
            monthly=[
                _breakdown(key, hours) for key, hours in months_of_year(result, reference.year)
            ],
            yearly=[_breakdown(year, result.by_year[year]) for year in sorted_years(result)],
        )
