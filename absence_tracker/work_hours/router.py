"""Work hours router.

Routes:
    /work-hours/entries              — List a month of entries; PUT upserts a day
    /work-hours/entries/{id}         — Delete an entry
    /work-hours/summaries            — Monthly normal / redistribution / overtime totals
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.auth.dependencies import get_session_context
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.rate_limit import limiter
from absence_tracker.database import get_db
from absence_tracker.work_hours.schemas import MonthlySummaryOut, WorkHoursOut, WorkHoursUpsert
from absence_tracker.work_hours.service import WorkHoursService

router = APIRouter()


@router.get("/entries")
async def list_work_hours(
    employee_id: uuid.UUID = Query(...),
    year: int = Query(..., ge=1900, le=2999),
    month: int = Query(..., ge=1, le=12),
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    entries = await WorkHoursService.list_entries(db, ctx, employee_id, year, month)
    return {"data": [WorkHoursOut.model_validate(e).model_dump(mode="json") for e in entries]}


@router.put("/entries")
@limiter.limit("60/minute")
async def upsert_work_hours(
    request: Request,
    body: WorkHoursUpsert,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """Record the hours worked on one day (``8`` or ``7:30``)."""
    entry = await WorkHoursService.upsert_entry(
        db, ctx, body.employee_id, body.work_date, body.hours_input,
    )
    return {
        "data": WorkHoursOut.model_validate(entry).model_dump(mode="json"),
        "message": "Work hours saved.",
    }


@router.delete("/entries/{entry_id}")
async def delete_work_hours(
    entry_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    await WorkHoursService.delete_entry(db, ctx, entry_id)
    return {"message": "Work hours deleted."}


@router.get("/summaries")
async def list_monthly_summaries(
    employee_id: uuid.UUID = Query(...),
    year: Optional[int] = Query(None, ge=1900, le=2999),
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    summaries = await WorkHoursService.get_monthly_summaries(db, ctx, employee_id, year)
    return {
        "data": [MonthlySummaryOut.model_validate(s).model_dump(mode="json") for s in summaries],
    }
