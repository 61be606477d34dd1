"""Report builders — pure functions turning fetched rows into report tables.

Every builder receives a ``ReportInput`` (employees, absence records and
lookup tables already filtered by the service) and returns a
``ReportData`` with column headings and one dict per row. Hours are
summed as ``Decimal``; averages and rates carry two decimals.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from absence_tracker.absences.aggregation import month_key
from absence_tracker.common.constants import (
    DEFAULT_ABSENCE_HOURS,
    HOURS_PER_DAY,
    NO_DEPARTMENT_LABEL,
    UNKNOWN_LABEL,
    ReportKind,
)
from absence_tracker.reports.schemas import ReportData

_TWO_PLACES = Decimal("0.01")
_ZERO = Decimal("0")


@dataclass
class ReportInput:
    employees: list[Any] = field(default_factory=list)
    records: list[Any] = field(default_factory=list)
    companies: list[Any] = field(default_factory=list)
    departments: dict[uuid.UUID, str] = field(default_factory=dict)
    absence_types: dict[str, str] = field(default_factory=dict)
    period: str = ""


# ── Helpers ─────────────────────────────────────────────────────────

def _hours(record: Any) -> Decimal:
    return Decimal(str(record.hours)) if record.hours is not None else DEFAULT_ABSENCE_HOURS


def _avg(total: Decimal, count: int) -> Decimal:
    if not count:
        return _ZERO
    return (total / count).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def _name(employee: Any) -> str:
    return f"{employee.first_name} {employee.last_name}"


def department_name(departments: dict[uuid.UUID, str], department_id: Optional[uuid.UUID]) -> str:
    """``Not assigned`` without a department, ``Unknown`` for a dangling id."""
    if department_id is None:
        return NO_DEPARTMENT_LABEL
    return departments.get(department_id, UNKNOWN_LABEL)


# ── Builders ────────────────────────────────────────────────────────

def absence_summary(data: ReportInput) -> ReportData:
    """Per employee: total hours, absence days and hours per day."""
    by_employee: dict[uuid.UUID, list[Any]] = {}
    for record in data.records:
        by_employee.setdefault(record.employee_id, []).append(record)

    rows = []
    for employee in data.employees:
        records = by_employee.get(employee.id, [])
        total = sum((_hours(r) for r in records), _ZERO)
        rows.append({
            "employee": _name(employee),
            "department": department_name(data.departments, employee.department_id),
            "total_hours": total,
            "absence_days": len(records),
            "average_hours": _avg(total, len(records)),
        })
    rows.sort(key=lambda row: row["total_hours"], reverse=True)

    return ReportData(
        id=ReportKind.absence_summary,
        title="Absence summary",
        description=f"Absences per employee for {data.period}",
        columns=["Employee", "Department", "Total hours", "Absence days", "Average hours/day"],
        rows=rows,
    )


def employee_absence(data: ReportInput) -> ReportData:
    """Every absence record in the range, newest first."""
    employees = {e.id: e for e in data.employees}
    rows = []
    for record in data.records:
        employee = employees.get(record.employee_id)
        if employee is None:
            continue
        rows.append({
            "date": record.date,
            "employee": _name(employee),
            "department": department_name(data.departments, employee.department_id),
            "absence_type": data.absence_types.get(record.absence_type_id, UNKNOWN_LABEL),
            "hours": _hours(record),
            "status": getattr(record.status, "value", record.status),
        })
    rows.sort(key=lambda row: row["date"], reverse=True)

    return ReportData(
        id=ReportKind.employee_absence,
        title="Absence details",
        description=f"All absences for {data.period}",
        columns=["Date", "Employee", "Department", "Absence type", "Hours", "Status"],
        rows=rows,
    )


def absence_by_type(data: ReportInput) -> ReportData:
    """Per absence type name: cases, hours and distinct employees."""
    stats: dict[str, dict[str, Any]] = {}
    for record in data.records:
        name = data.absence_types.get(record.absence_type_id, UNKNOWN_LABEL)
        entry = stats.setdefault(name, {"count": 0, "hours": _ZERO, "employees": set()})
        entry["count"] += 1
        entry["hours"] += _hours(record)
        entry["employees"].add(record.employee_id)

    rows = [
        {
            "absence_type": name,
            "total_cases": entry["count"],
            "total_hours": entry["hours"],
            "unique_employees": len(entry["employees"]),
            "average_hours": _avg(entry["hours"], entry["count"]),
        }
        for name, entry in stats.items()
    ]
    rows.sort(key=lambda row: row["total_cases"], reverse=True)

    return ReportData(
        id=ReportKind.absence_by_type,
        title="Absences by type",
        description=f"Absences grouped by type for {data.period}",
        columns=["Absence type", "Cases", "Total hours", "Unique employees", "Average hours"],
        rows=rows,
    )


def monthly_hours(data: ReportInput) -> ReportData:
    """Absence hours per month and employee, latest month first."""
    employees = {e.id: e for e in data.employees}
    totals: dict[str, dict[uuid.UUID, Decimal]] = {}
    for record in data.records:
        month = totals.setdefault(month_key(record.date), {})
        month[record.employee_id] = month.get(record.employee_id, _ZERO) + _hours(record)

    rows = []
    for month, per_employee in totals.items():
        for employee_id, hours in per_employee.items():
            employee = employees.get(employee_id)
            if employee is None:
                continue
            rows.append({
                "month": month,
                "employee": _name(employee),
                "department": department_name(data.departments, employee.department_id),
                "total_hours": hours,
                "working_days": math.ceil(hours / HOURS_PER_DAY),
            })
    rows.sort(key=lambda row: row["month"], reverse=True)

    return ReportData(
        id=ReportKind.monthly_hours,
        title="Monthly absence hours",
        description="Absence hours per month and employee",
        columns=["Month", "Employee", "Department", "Total hours", "Working days (8h)"],
        rows=rows,
    )


def company_overview(data: ReportInput) -> ReportData:
    """Per company: headcount, absences and share of employees absent."""
    employee_company = {e.id: e.company_id for e in data.employees}

    rows = []
    for company in data.companies:
        headcount = sum(1 for e in data.employees if e.company_id == company.id)
        records = [r for r in data.records if employee_company.get(r.employee_id) == company.id]
        absent = len({r.employee_id for r in records})
        rate = (
            (Decimal(absent) / headcount * 100).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
            if headcount else _ZERO
        )
        rows.append({
            "company": company.name,
            "total_employees": headcount,
            "total_absences": len(records),
            "total_hours": sum((_hours(r) for r in records), _ZERO),
            "employees_with_absence": absent,
            "absence_rate": rate,
        })
    rows.sort(key=lambda row: row["absence_rate"], reverse=True)

    return ReportData(
        id=ReportKind.company_overview,
        title="Company overview",
        description="Absences compared across companies",
        columns=[
            "Company", "Employees", "Absences", "Total hours",
            "Employees with absence", "Absence rate %",
        ],
        rows=rows,
    )


def department_summary(data: ReportInput) -> ReportData:
    """Per department name: headcount, absences, hours per employee."""
    employee_dept: dict[uuid.UUID, str] = {}
    stats: dict[str, dict[str, Any]] = {}
    for employee in data.employees:
        name = department_name(data.departments, employee.department_id)
        employee_dept[employee.id] = name
        entry = stats.setdefault(name, {"employees": 0, "absences": 0, "hours": _ZERO})
        entry["employees"] += 1

    for record in data.records:
        name = employee_dept.get(record.employee_id)
        if name is None:
            continue
        stats[name]["absences"] += 1
        stats[name]["hours"] += _hours(record)

    rows = [
        {
            "department": name,
            "total_employees": entry["employees"],
            "total_absences": entry["absences"],
            "total_hours": entry["hours"],
            "average_per_employee": _avg(entry["hours"], entry["employees"]),
        }
        for name, entry in stats.items()
    ]
    rows.sort(key=lambda row: row["total_hours"], reverse=True)

    return ReportData(
        id=ReportKind.department_summary,
        title="Department summary",
        description=f"Absences per department for {data.period}",
        columns=["Department", "Employees", "Absences", "Total hours", "Average per employee"],
        rows=rows,
    )


BUILDERS: dict[ReportKind, Callable[[ReportInput], ReportData]] = {
    ReportKind.absence_summary: absence_summary,
    ReportKind.employee_absence: employee_absence,
    ReportKind.absence_by_type: absence_by_type,
    ReportKind.monthly_hours: monthly_hours,
    ReportKind.company_overview: company_overview,
    ReportKind.department_summary: department_summary,
}
