"""Auth schemas: the explicit per-request session context."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel

from absence_tracker.common.constants import PERMISSIONS, UserRole
from absence_tracker.common.exceptions import ForbiddenException


class SessionContext(BaseModel):
    """Who is calling, resolved once per request and handed to services.

    ``employee_id`` / ``company_id`` are empty for auth users without an
    employee profile (typically admins).
    """

    user_id: uuid.UUID
    email: Optional[str] = None
    role: UserRole = UserRole.user
    employee_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def has_permission(self, permission: str) -> bool:
        return permission in PERMISSIONS.get(self.role, [])

    def ensure_company_access(self, company_id: Optional[uuid.UUID]) -> None:
        """Non-admins may only touch rows of their own company."""
        if self.is_admin:
            return
        if self.company_id is None or company_id != self.company_id:
            raise ForbiddenException(
                detail="You can only access data of your own company.",
            )

    def company_scope(self, requested: Optional[uuid.UUID] = None) -> Optional[uuid.UUID]:
        """Company filter to apply to a query: admins get what they asked
        for (``None`` = all companies), everybody else is pinned to theirs."""
        if self.is_admin:
            return requested
        if self.company_id is None:
            raise ForbiddenException(detail="Your account is not linked to a company.")
        return self.company_id
