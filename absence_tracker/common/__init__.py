"""Common module — shared utilities for Absence Tracker."""

from absence_tracker.common.audit import AuditTrail, create_audit_entry
from absence_tracker.common.constants import (
    DEFAULT_PAGE_SIZE,
    HOURS_PER_DAY,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    AbsenceStatus,
    ReportKind,
    SummaryPeriod,
    UserRole,
)
from absence_tracker.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from absence_tracker.common.filters import apply_filters, apply_search, apply_sorting
from absence_tracker.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants
    "DEFAULT_PAGE_SIZE",
    "HOURS_PER_DAY",
    "MAX_PAGE_SIZE",
    "PERMISSIONS",
    "AbsenceStatus",
    "ReportKind",
    "SummaryPeriod",
    "UserRole",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    "apply_sorting",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
