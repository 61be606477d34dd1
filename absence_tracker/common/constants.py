"""Enums and constants for Absence Tracker — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum
from decimal import Decimal


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    user = "user"


# ── Absences ────────────────────────────────────────────────────────

class AbsenceStatus(str, enum.Enum):
    approved = "approved"
    pending = "pending"
    rejected = "rejected"


class SummaryPeriod(str, enum.Enum):
    month = "month"
    year = "year"
    all = "all"


# ── Reports ─────────────────────────────────────────────────────────

class ReportKind(str, enum.Enum):
    absence_summary = "absence-summary"
    employee_absence = "employee-absence"
    absence_by_type = "absence-by-type"
    monthly_hours = "monthly-hours"
    company_overview = "company-overview"
    department_summary = "department-summary"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.user: [
        "absence:write",
        "work_hours:read_own",
        "work_hours:write_own",
    ],
    UserRole.admin: [
        "employee:write",
        "organization:write",
        "absence:write",
        "absence:review",
        "absence_type:write",
        "work_hours:read_all",
        "work_hours:write_all",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

HOURS_PER_DAY = Decimal("8")        # one standard workday, in hours
STANDARD_DAY_HOURS = Decimal("8")
DEFAULT_ABSENCE_HOURS = Decimal("8")
DEFAULT_WORK_GROUP_ID = 1
NO_DEPARTMENT_LABEL = "Not assigned"
UNKNOWN_LABEL = "Unknown"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
