"""Dashboard router — per-employee absence summary."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.auth.dependencies import get_session_context
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.constants import SummaryPeriod
from absence_tracker.dashboard.service import DashboardService
from absence_tracker.database import get_db

router = APIRouter()


@router.get("/employees/{employee_id}/summary")
async def employee_summary(
    employee_id: uuid.UUID,
    period: SummaryPeriod = Query(SummaryPeriod.month),
    reference: Optional[date] = Query(None, description="Day inside the month/year to show"),
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Absence hours per type for a month, a year or all time, with
    day equivalents, percentages and month/year breakdowns."""
    summary = await DashboardService.employee_summary(db, ctx, employee_id, period, reference)
    return {"data": summary.model_dump(mode="json")}
