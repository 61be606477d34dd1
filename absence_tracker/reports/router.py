"""Reports router — six absence reports over a date range."""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.auth.dependencies import get_session_context
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.constants import ReportKind
from absence_tracker.common.exceptions import NotFoundException
from absence_tracker.database import get_db
from absence_tracker.reports.service import ReportService

router = APIRouter()


@router.get("")
async def list_reports(ctx: SessionContext = Depends(get_session_context)):
    return {"data": [kind.value for kind in ReportKind]}


@router.get("/{kind}")
async def get_report(
    kind: str,
    start: Optional[date] = Query(None, description="First day (inclusive)"),
    end: Optional[date] = Query(None, description="Last day (inclusive)"),
    company_id: Optional[uuid.UUID] = Query(None, description="Admins only; users see their company"),
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    try:
        report_kind = ReportKind(kind)
    except ValueError:
        raise NotFoundException("Report", kind)

    report = await ReportService.generate(
        db,
        report_kind,
        start=start,
        end=end,
        company_id=ctx.company_scope(company_id),
    )
    return {"data": report.model_dump(mode="json")}
