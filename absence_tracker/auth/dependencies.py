"""Auth dependencies — JWT validation, session context, RBAC enforcement."""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.auth.models import UserRoleAssignment
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.constants import UserRole
from absence_tracker.common.exceptions import ForbiddenException
from absence_tracker.config import settings
from absence_tracker.core_hr.models import Employee
from absence_tracker.database import get_db

logger = logging.getLogger(__name__)


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and audience of an auth-provider token."""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid token.")


# ── Core dependency ─────────────────────────────────────────────────

async def get_session_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """Validate the bearer JWT and resolve role + employee profile."""
    payload = decode_access_token(_extract_bearer(request))

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Token has no valid subject.")

    role_row = await db.execute(
        select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == user_id)
    )
    role = role_row.scalar() or UserRole.user

    emp_row = await db.execute(
        select(Employee.id, Employee.company_id).where(Employee.user_id == user_id)
    )
    employee = emp_row.first()

    ctx = SessionContext(
        user_id=user_id,
        email=payload.get("email"),
        role=role,
        employee_id=employee.id if employee else None,
        company_id=employee.company_id if employee else None,
    )
    request.state.session = ctx
    return ctx


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(
        ctx: SessionContext = Depends(get_session_context),
    ) -> SessionContext:
        if not ctx.has_permission(permission):
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{ctx.role.value}'.",
            )
        return ctx

    return _check
