"""Core HR service layer — async CRUD for companies, departments,
work groups and employees.

Uses:
  - ``paginate()`` from absence_tracker.common.pagination
  - ``apply_filters / apply_search`` from absence_tracker.common.filters
  - ``create_audit_entry`` from absence_tracker.common.audit
  - ``NotFoundException / ConflictError`` from absence_tracker.common.exceptions
"""

from __future__ import annotations

import logging
import uuid
from datetime import time
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from absence_tracker.absences.models import AbsenceRecord
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.audit import create_audit_entry
from absence_tracker.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from absence_tracker.common.filters import apply_filters, apply_search
from absence_tracker.common.pagination import PaginatedResponse, PaginationParams, paginate
from absence_tracker.core_hr.models import Company, Department, Employee, WorkGroup
from absence_tracker.core_hr.schemas import (
    CompanyCreate,
    CompanyUpdate,
    DepartmentCreate,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeUpdate,
    WorkGroupCreate,
    WorkGroupUpdate,
)
from absence_tracker.work_hours.models import MonthlyHoursSummary, WorkHoursEntry

logger = logging.getLogger(__name__)


def work_group_hours(start: time, end: time) -> Decimal:
    """Length of a shift in decimal hours, never negative."""
    start_total = Decimal(start.hour) + Decimal(start.minute) / 60
    end_total = Decimal(end.hour) + Decimal(end.minute) / 60
    return max(Decimal("0"), end_total - start_total).quantize(Decimal("0.01"))


# ═════════════════════════════════════════════════════════════════════
# CompanyService
# ═════════════════════════════════════════════════════════════════════


class CompanyService:
    """Async CRUD operations for companies."""

    @staticmethod
    async def list_companies(
        db: AsyncSession,
        *,
        is_active: Optional[bool] = True,
    ) -> list[Company]:
        query = select(Company).order_by(Company.name)
        if is_active is not None:
            query = query.where(Company.is_active == is_active)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_company(db: AsyncSession, company_id: uuid.UUID) -> Company:
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundException("Company", str(company_id))
        return company

    @staticmethod
    async def create_company(
        db: AsyncSession,
        data: CompanyCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Company:
        company = Company(**data.model_dump())
        db.add(company)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)

        await create_audit_entry(
            db,
            action="create",
            entity_type="company",
            entity_id=company.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Created company %s (%s)", company.name, company.id)
        return company

    @staticmethod
    async def update_company(
        db: AsyncSession,
        company_id: uuid.UUID,
        data: CompanyUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Company:
        company = await CompanyService.get_company(db, company_id)
        changes = data.model_dump(exclude_unset=True)
        old_values = {k: getattr(company, k) for k in changes}
        for field, value in changes.items():
            setattr(company, field, value)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", changes.get("name"))

        await create_audit_entry(
            db,
            action="update",
            entity_type="company",
            entity_id=company.id,
            actor_id=actor_id,
            old_values={k: str(v) for k, v in old_values.items()},
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return company

    @staticmethod
    async def deactivate_company(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Company:
        """Soft-delete: companies are never removed, only hidden."""
        company = await CompanyService.get_company(db, company_id)
        company.is_active = False
        await db.flush()
        await create_audit_entry(
            db,
            action="deactivate",
            entity_type="company",
            entity_id=company.id,
            actor_id=actor_id,
        )
        return company


# ═════════════════════════════════════════════════════════════════════
# DepartmentService
# ═════════════════════════════════════════════════════════════════════


class DepartmentService:
    """Async CRUD operations for departments."""

    @staticmethod
    async def list_departments(
        db: AsyncSession,
        *,
        company_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = True,
    ) -> list[Department]:
        query = (
            select(Department)
            .options(selectinload(Department.company))
            .order_by(Department.name)
        )
        query = apply_filters(
            query, Department, {"company_id": company_id, "is_active": is_active},
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_department(db: AsyncSession, department_id: uuid.UUID) -> Department:
        result = await db.execute(
            select(Department)
            .where(Department.id == department_id)
            .options(selectinload(Department.company))
        )
        department = result.scalars().first()
        if department is None:
            raise NotFoundException("Department", str(department_id))
        return department

    @staticmethod
    async def create_department(
        db: AsyncSession,
        data: DepartmentCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Department:
        await CompanyService.get_company(db, data.company_id)

        department = Department(**data.model_dump())
        db.add(department)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)

        await create_audit_entry(
            db,
            action="create",
            entity_type="department",
            entity_id=department.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return await DepartmentService.get_department(db, department.id)

    @staticmethod
    async def update_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        data: DepartmentUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Department:
        department = await DepartmentService.get_department(db, department_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(department, field, value)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("name", data.name)

        await create_audit_entry(
            db,
            action="update",
            entity_type="department",
            entity_id=department.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return department

    @staticmethod
    async def deactivate_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Department:
        department = await DepartmentService.get_department(db, department_id)
        department.is_active = False
        await db.flush()
        await create_audit_entry(
            db,
            action="deactivate",
            entity_type="department",
            entity_id=department.id,
            actor_id=actor_id,
        )
        return department


# ═════════════════════════════════════════════════════════════════════
# WorkGroupService
# ═════════════════════════════════════════════════════════════════════


class WorkGroupService:
    """Async CRUD operations for work groups (shift patterns)."""

    @staticmethod
    async def list_work_groups(
        db: AsyncSession,
        *,
        company_id: Optional[uuid.UUID] = None,
    ) -> list[WorkGroup]:
        query = select(WorkGroup).order_by(WorkGroup.id)
        if company_id is not None:
            query = query.where(
                (WorkGroup.company_id == company_id) | WorkGroup.company_id.is_(None)
            )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_work_group(db: AsyncSession, work_group_id: int) -> WorkGroup:
        group = await db.get(WorkGroup, work_group_id)
        if group is None:
            raise NotFoundException("WorkGroup", work_group_id)
        return group

    @staticmethod
    async def create_work_group(
        db: AsyncSession,
        data: WorkGroupCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> WorkGroup:
        group = WorkGroup(**data.model_dump())
        db.add(group)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="work_group",
            entity_id=group.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return group

    @staticmethod
    async def update_work_group(
        db: AsyncSession,
        work_group_id: int,
        data: WorkGroupUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> WorkGroup:
        group = await WorkGroupService.get_work_group(db, work_group_id)
        changes = data.model_dump(exclude_unset=True)

        start = changes.get("start_time", group.start_time)
        end = changes.get("end_time", group.end_time)
        if end <= start:
            raise ValidationException(
                {"end_time": ["end_time must be after start_time."]}
            )
        if "name" in changes and not (changes["name"] or "").strip():
            raise ValidationException({"name": ["Name is required."]})

        for field, value in changes.items():
            setattr(group, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="work_group",
            entity_id=group.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return group

    @staticmethod
    async def delete_work_group(
        db: AsyncSession,
        work_group_id: int,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete a work group. Refused while employees are still assigned."""
        group = await WorkGroupService.get_work_group(db, work_group_id)

        in_use = await db.execute(
            select(func.count(Employee.id)).where(Employee.work_group == work_group_id)
        )
        if in_use.scalar_one():
            raise ValidationException(
                {"work_group": ["Work group still has employees assigned."]}
            )

        await db.delete(group)
        await db.flush()
        await create_audit_entry(
            db,
            action="delete",
            entity_type="work_group",
            entity_id=work_group_id,
            actor_id=actor_id,
        )


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees."""

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        company_id: Optional[uuid.UUID] = None,
        department_id: Optional[uuid.UUID] = None,
        work_group: Optional[int] = None,
    ) -> PaginatedResponse:
        """Return a paginated, filtered employee list.

        ``search`` matches first name, last name, e-mail and work group name.
        """
        query = (
            select(Employee)
            .outerjoin(WorkGroup, Employee.work_group == WorkGroup.id)
            .options(
                selectinload(Employee.company),
                selectinload(Employee.department),
                selectinload(Employee.work_group_details),
            )
            .order_by(Employee.first_name, Employee.last_name)
        )

        filters: dict[str, Any] = {
            "company_id": company_id,
            "department_id": department_id,
            "work_group": work_group,
        }
        query = apply_filters(query, Employee, filters)
        query = apply_search(
            query,
            search,
            [Employee.first_name, Employee.last_name, Employee.email, WorkGroup.name],
        )

        return await paginate(db, query, pagination, model=Employee)

    # ── Get single ──────────────────────────────────────────────────

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        ctx: Optional[SessionContext] = None,
    ) -> Employee:
        """Load an employee with company, department and work group.

        When *ctx* is given, non-admin callers are limited to their company.
        """
        result = await db.execute(
            select(Employee)
            .where(Employee.id == employee_id)
            .options(
                selectinload(Employee.company),
                selectinload(Employee.department),
                selectinload(Employee.work_group_details),
            )
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        if ctx is not None:
            ctx.ensure_company_access(employee.company_id)
        return employee

    # ── Validation helpers ──────────────────────────────────────────

    @staticmethod
    async def _check_references(
        db: AsyncSession,
        *,
        work_group: Optional[int],
        company_id: Optional[uuid.UUID],
        department_id: Optional[uuid.UUID],
    ) -> None:
        errors: dict[str, list[str]] = {}
        if work_group is not None and await db.get(WorkGroup, work_group) is None:
            errors["work_group"] = [f"Work group {work_group} does not exist."]
        if company_id is not None and await db.get(Company, company_id) is None:
            errors["company_id"] = [f"Company '{company_id}' does not exist."]
        if department_id is not None:
            department = await db.get(Department, department_id)
            if department is None:
                errors["department_id"] = [f"Department '{department_id}' does not exist."]
            elif company_id is not None and department.company_id != company_id:
                errors["department_id"] = ["Department belongs to a different company."]
        if errors:
            raise ValidationException(errors)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        """Create a new employee record."""
        await EmployeeService._check_references(
            db,
            work_group=data.work_group,
            company_id=data.company_id,
            department_id=data.department_id,
        )

        employee = Employee(**data.model_dump())
        db.add(employee)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "user_id" in err:
                raise ConflictError("user_id", data.user_id)
            raise ConflictError("email", data.email)

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Created employee %s (%s)", employee.full_name, employee.id)
        return await EmployeeService.get_employee(db, employee.id)

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        """Apply a partial update; only fields present in the payload change."""
        employee = await EmployeeService.get_employee(db, employee_id)
        changes = data.model_dump(exclude_unset=True)

        await EmployeeService._check_references(
            db,
            work_group=changes.get("work_group"),
            company_id=changes.get("company_id", employee.company_id),
            department_id=changes.get("department_id", employee.department_id),
        )

        old_values = {k: getattr(employee, k) for k in changes}
        for field, value in changes.items():
            setattr(employee, field, value)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("email", changes.get("email"))

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            old_values={k: None if v is None else str(v) for k, v in old_values.items()},
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return await EmployeeService.get_employee(db, employee.id)

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Delete an employee together with their absences and hours."""
        employee = await EmployeeService.get_employee(db, employee_id)

        for model in (AbsenceRecord, WorkHoursEntry, MonthlyHoursSummary):
            await db.execute(delete(model).where(model.employee_id == employee_id))
        await db.delete(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="employee",
            entity_id=employee_id,
            actor_id=actor_id,
            old_values={"email": employee.email, "name": employee.full_name},
        )
        logger.info("Deleted employee %s", employee_id)
