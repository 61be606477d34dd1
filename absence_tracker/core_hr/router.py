"""Core HR router — Company, Department, WorkGroup, Employee API endpoints.

Routes:
    /companies               — List, create companies
    /companies/{id}          — Get, update, deactivate company
    /departments             — List, create departments
    /departments/{id}        — Get, update, deactivate department
    /work-groups             — List, create work groups
    /work-groups/{id}        — Get, update, delete work group
    /employees               — List (search, filter, paginate), create
    /employees/{id}          — Get, update, delete employee
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from absence_tracker.auth.dependencies import get_session_context, require_permission
from absence_tracker.auth.schemas import SessionContext
from absence_tracker.common.pagination import PaginationParams
from absence_tracker.core_hr.schemas import (
    CompanyCreate,
    CompanyOut,
    CompanyUpdate,
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeDetail,
    EmployeeUpdate,
    WorkGroupCreate,
    WorkGroupOut,
    WorkGroupUpdate,
)
from absence_tracker.core_hr.service import (
    CompanyService,
    DepartmentService,
    EmployeeService,
    WorkGroupService,
    work_group_hours,
)
from absence_tracker.database import get_db


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

companies_router = APIRouter(prefix="", tags=["companies"])
departments_router = APIRouter(prefix="", tags=["departments"])
work_groups_router = APIRouter(prefix="", tags=["work-groups"])
employees_router = APIRouter(prefix="", tags=["employees"])


def _work_group_out(group) -> dict:
    data = WorkGroupOut.model_validate(group).model_dump(mode="json")
    data["hours"] = float(work_group_hours(group.start_time, group.end_time))
    return data


# ═════════════════════════════════════════════════════════════════════
# Company Endpoints
# ═════════════════════════════════════════════════════════════════════


@companies_router.get("")
async def list_companies(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    include_inactive: bool = Query(False, description="Include deactivated companies"),
):
    """List companies. Non-admins only see the company they belong to."""
    companies = await CompanyService.list_companies(
        db, is_active=None if include_inactive else True,
    )
    if not ctx.is_admin:
        companies = [c for c in companies if c.id == ctx.company_id]
    return {"data": [CompanyOut.model_validate(c).model_dump(mode="json") for c in companies]}


@companies_router.get("/{company_id}")
async def get_company(
    company_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    ctx.ensure_company_access(company_id)
    company = await CompanyService.get_company(db, company_id)
    return {"data": CompanyOut.model_validate(company).model_dump(mode="json")}


@companies_router.post("", status_code=201)
async def create_company(
    body: CompanyCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    company = await CompanyService.create_company(db, body, actor_id=ctx.user_id)
    return {
        "data": CompanyOut.model_validate(company).model_dump(mode="json"),
        "message": "Company created successfully.",
    }


@companies_router.put("/{company_id}")
async def update_company(
    company_id: uuid.UUID,
    body: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    company = await CompanyService.update_company(db, company_id, body, actor_id=ctx.user_id)
    return {
        "data": CompanyOut.model_validate(company).model_dump(mode="json"),
        "message": "Company updated successfully.",
    }


@companies_router.delete("/{company_id}")
async def deactivate_company(
    company_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    await CompanyService.deactivate_company(db, company_id, actor_id=ctx.user_id)
    return {"message": "Company deactivated successfully."}


# ═════════════════════════════════════════════════════════════════════
# Department Endpoints
# ═════════════════════════════════════════════════════════════════════


@departments_router.get("")
async def list_departments(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    company_id: Optional[uuid.UUID] = Query(None, description="Filter by company"),
    include_inactive: bool = Query(False),
):
    departments = await DepartmentService.list_departments(
        db,
        company_id=ctx.company_scope(company_id),
        is_active=None if include_inactive else True,
    )
    return {
        "data": [DepartmentOut.model_validate(d).model_dump(mode="json") for d in departments],
    }


@departments_router.get("/{department_id}")
async def get_department(
    department_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    department = await DepartmentService.get_department(db, department_id)
    ctx.ensure_company_access(department.company_id)
    return {"data": DepartmentOut.model_validate(department).model_dump(mode="json")}


@departments_router.post("", status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    department = await DepartmentService.create_department(db, body, actor_id=ctx.user_id)
    return {
        "data": DepartmentOut.model_validate(department).model_dump(mode="json"),
        "message": "Department created successfully.",
    }


@departments_router.put("/{department_id}")
async def update_department(
    department_id: uuid.UUID,
    body: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    department = await DepartmentService.update_department(
        db, department_id, body, actor_id=ctx.user_id,
    )
    return {
        "data": DepartmentOut.model_validate(department).model_dump(mode="json"),
        "message": "Department updated successfully.",
    }


@departments_router.delete("/{department_id}")
async def deactivate_department(
    department_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    await DepartmentService.deactivate_department(db, department_id, actor_id=ctx.user_id)
    return {"message": "Department deactivated successfully."}


# ═════════════════════════════════════════════════════════════════════
# Work Group Endpoints
# ═════════════════════════════════════════════════════════════════════


@work_groups_router.get("")
async def list_work_groups(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    """List work groups ordered by id, with the shift length in hours."""
    groups = await WorkGroupService.list_work_groups(
        db, company_id=None if ctx.is_admin else ctx.company_id,
    )
    return {"data": [_work_group_out(g) for g in groups]}


@work_groups_router.get("/{work_group_id}")
async def get_work_group(
    work_group_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    group = await WorkGroupService.get_work_group(db, work_group_id)
    return {"data": _work_group_out(group)}


@work_groups_router.post("", status_code=201)
async def create_work_group(
    body: WorkGroupCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    group = await WorkGroupService.create_work_group(db, body, actor_id=ctx.user_id)
    return {"data": _work_group_out(group), "message": "Work group created successfully."}


@work_groups_router.put("/{work_group_id}")
async def update_work_group(
    work_group_id: int,
    body: WorkGroupUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    group = await WorkGroupService.update_work_group(
        db, work_group_id, body, actor_id=ctx.user_id,
    )
    return {"data": _work_group_out(group), "message": "Work group updated successfully."}


@work_groups_router.delete("/{work_group_id}")
async def delete_work_group(
    work_group_id: int,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("organization:write")),
):
    await WorkGroupService.delete_work_group(db, work_group_id, actor_id=ctx.user_id)
    return {"message": "Work group deleted successfully."}


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /employees — List employees ─────────────────────────────────

@employees_router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by name, email, or work group"),
    company_id: Optional[uuid.UUID] = Query(None, description="Filter by company"),
    department_id: Optional[uuid.UUID] = Query(None, description="Filter by department"),
    work_group: Optional[int] = Query(None, description="Filter by work group id"),
):
    """List employees with pagination, search, and filtering.

    - **user**: employees of their own company only
    - **admin**: all employees, optionally filtered by ``company_id``
    """
    result = await EmployeeService.list_employees(
        db,
        pagination,
        search=search,
        company_id=ctx.company_scope(company_id),
        department_id=department_id,
        work_group=work_group,
    )
    return {
        "data": [
            EmployeeDetail.model_validate(emp).model_dump(mode="json") for emp in result.data
        ],
        "meta": result.meta.model_dump(),
    }


# ── GET /employees/{id} ─────────────────────────────────────────────

@employees_router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
):
    employee = await EmployeeService.get_employee(db, employee_id, ctx)
    return {"data": EmployeeDetail.model_validate(employee).model_dump(mode="json")}


# ── POST /employees ─────────────────────────────────────────────────

@employees_router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("employee:write")),
):
    """Create a new employee record. Requires **admin**."""
    employee = await EmployeeService.create_employee(db, body, actor_id=ctx.user_id)
    return {
        "data": EmployeeDetail.model_validate(employee).model_dump(mode="json"),
        "message": "Employee created successfully.",
    }


# ── PUT /employees/{id} ─────────────────────────────────────────────

@employees_router.put("/{employee_id}")
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("employee:write")),
):
    employee = await EmployeeService.update_employee(
        db, employee_id, body, actor_id=ctx.user_id,
    )
    return {
        "data": EmployeeDetail.model_validate(employee).model_dump(mode="json"),
        "message": "Employee updated successfully.",
    }


# ── DELETE /employees/{id} ──────────────────────────────────────────

@employees_router.delete("/{employee_id}")
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_permission("employee:write")),
):
    """Delete an employee along with their absences and work hours."""
    await EmployeeService.delete_employee(db, employee_id, actor_id=ctx.user_id)
    return {"message": "Employee deleted successfully."}
