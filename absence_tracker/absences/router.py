"""Absences router — absence types, per-day records and the month calendar.

Routes:
    /absences/types                 — List, create absence types
    /absences/types/{id}            — Update absence type
    /absences/records               — List records; PUT sets or clears a day
    /absences/records/{id}/status   — Approve / reject
    /absences/calendar              — Month grid of employees × days
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.absences.schemas import (
    AbsenceRecordOut,
    AbsenceSet,
    AbsenceStatusUpdate,
    AbsenceTypeCreate,
    AbsenceTypeOut,
    AbsenceTypeUpdate,
)
from absence_tracker.absences.service import AbsenceService
from absence_tracker.auth.dependencies import get_session_context, require_permission
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.constants import AbsenceStatus
from absence_tracker.common.rate_limit import limiter
from absence_tracker.core_hr.service import EmployeeService
from absence_tracker.database import get_db

router = APIRouter()


# ═════════════════════════════════════════════════════════════════════
# Absence types
# ═════════════════════════════════════════════════════════════════════


@router.get("/types")
async def list_absence_types(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    include_inactive: bool = Query(False),
):
    types = await AbsenceService.list_types(
        db,
        include_inactive=include_inactive,
        company_id=None if ctx.is_admin else ctx.company_id,
    )
    return {"data": [AbsenceTypeOut.model_validate(t).model_dump(mode="json") for t in types]}


@router.post("/types", status_code=201)
async def create_absence_type(
    body: AbsenceTypeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("absence_type:write")),
):
    absence_type = await AbsenceService.create_type(db, body, actor_id=ctx.user_id)
    return {
        "data": AbsenceTypeOut.model_validate(absence_type).model_dump(mode="json"),
        "message": "Absence type created successfully.",
    }


@router.put("/types/{type_id}")
async def update_absence_type(
    type_id: str,
    body: AbsenceTypeUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("absence_type:write")),
):
    absence_type = await AbsenceService.update_type(db, type_id, body, actor_id=ctx.user_id)
    return {
        "data": AbsenceTypeOut.model_validate(absence_type).model_dump(mode="json"),
        "message": "Absence type updated successfully.",
    }


# ═════════════════════════════════════════════════════════════════════
# Absence records
# ═════════════════════════════════════════════════════════════════════


@router.get("/records")
async def list_absence_records(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[AbsenceStatus] = Query(None),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
):
    """List absence records. Non-admins only see their own company."""
    if employee_id is not None:
        await EmployeeService.get_employee(db, employee_id, ctx)

    records = await AbsenceService.list_records(
        db,
        employee_id=employee_id,
        company_id=ctx.company_scope(),
        status=status,
        from_date=from_date,
        to_date=to_date,
    )
    return {"data": [AbsenceRecordOut.model_validate(r).model_dump(mode="json") for r in records]}


@router.put("/records")
@limiter.limit("60/minute")
async def set_absence(
    request: Request,
    body: AbsenceSet,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("absence:write")),
):
    """Set the absence type of one employee-day, or clear it with ``null``."""
    record = await AbsenceService.set_absence(
        db, ctx, body.employee_id, body.date, body.absence_type_id,
    )
    if record is None:
        return {"data": None, "message": "Absence cleared."}
    return {
        "data": AbsenceRecordOut.model_validate(record).model_dump(mode="json"),
        "message": "Absence saved.",
    }


@router.patch("/records/{record_id}/status")
async def update_absence_status(
    record_id: uuid.UUID,
    body: AbsenceStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("absence:review")),
):
    record = await AbsenceService.update_status(db, record_id, body.status, actor_id=ctx.user_id)
    return {
        "data": AbsenceRecordOut.model_validate(record).model_dump(mode="json"),
        "message": f"Absence {body.status.value}.",
    }


# ═════════════════════════════════════════════════════════════════════
# Calendar
# ═════════════════════════════════════════════════════════════════════


@router.get("/calendar")
async def absence_calendar(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    year: int = Query(..., ge=1900, le=2999),
    month: int = Query(..., ge=1, le=12),
    company_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None, description="Filter employees by name"),
):
    result = await AbsenceService.get_calendar(
        db, year, month, company_id=ctx.company_scope(company_id), search=search,
    )
    return {"data": result.model_dump(mode="json")}
