"""Tests for the employee absence summary."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from absence_tracker.common.constants import AbsenceStatus, SummaryPeriod
from absence_tracker.dashboard.service import build_type_rows, period_label
from tests.conftest import add_absence, add_employee


async def _seed_scenario(db, employee_id) -> None:
    await add_absence(db, employee_id, date(2024, 3, 5), "V")
    await add_absence(db, employee_id, date(2024, 3, 12), "V")
    await add_absence(db, employee_id, date(2024, 4, 1), "B", hours=Decimal("4"))
    await add_absence(db, employee_id, date(2023, 12, 27), "V")
    await add_absence(db, employee_id, date(2024, 3, 20), "B", status=AbsenceStatus.pending)


class TestHelpers:

    def test_period_labels(self):
        ref = date(2024, 3, 15)
        assert period_label(SummaryPeriod.month, ref) == "March 2024"
        assert period_label(SummaryPeriod.year, ref) == "2024"
        assert period_label(SummaryPeriod.all, ref) == "All time"

    def test_rows_sorted_by_hours_with_unknown_type_fallback(self):
        class _Type:
            name = "Vacation"
            color = "#22c55e"

        rows = build_type_rows({"Q": Decimal("4"), "V": Decimal("12")}, {"V": _Type()})

        assert [r.absence_type_id for r in rows] == ["V", "Q"]
        assert rows[0].name == "Vacation"
        assert rows[0].days == 1.5
        assert rows[0].percentage == 75.0
        assert rows[1].name == "Q"
        assert rows[1].color is None

    def test_empty_period_has_no_rows(self):
        assert build_type_rows({}, {}) == []


class TestEmployeeSummary:

    async def test_month_summary(self, client, db, auth_headers, test_employee, absence_types):
        await _seed_scenario(db, test_employee["id"])

        resp = await client.get(
            f"/api/v1/dashboard/employees/{test_employee['id']}/summary",
            params={"period": "month", "reference": "2024-03-15"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]

        assert data["period_label"] == "March 2024"
        assert data["work_group_hours"] == 8.0
        assert data["total_hours"] == 16.0
        assert data["total_days"] == 2.0
        assert [(r["absence_type_id"], r["name"], r["percentage"]) for r in data["rows"]] == [
            ("V", "Vacation", 100.0),
        ]
        assert [m["key"] for m in data["monthly"]] == ["2024-03", "2024-04"]
        assert [y["key"] for y in data["yearly"]] == ["2024", "2023"]

    async def test_year_summary_matches_scenario(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        await _seed_scenario(db, test_employee["id"])

        resp = await client.get(
            f"/api/v1/dashboard/employees/{test_employee['id']}/summary",
            params={"period": "year", "reference": "2024-06-01"},
            headers=auth_headers,
        )
        data = resp.json()["data"]

        assert data["total_hours"] == 20.0
        assert data["total_days"] == 2.5
        assert {r["absence_type_id"]: r["percentage"] for r in data["rows"]} == {
            "V": 80.0,
            "B": 20.0,
        }

    async def test_all_time(self, client, db, auth_headers, test_employee, absence_types):
        await _seed_scenario(db, test_employee["id"])

        resp = await client.get(
            f"/api/v1/dashboard/employees/{test_employee['id']}/summary",
            params={"period": "all"},
            headers=auth_headers,
        )
        data = resp.json()["data"]
        assert data["period_label"] == "All time"
        assert data["total_hours"] == 28.0

    async def test_deactivated_type_shows_its_code(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        from absence_tracker.absences.models import AbsenceType

        await add_absence(db, test_employee["id"], date(2024, 3, 5), "B")
        sick = await db.get(AbsenceType, "B")
        sick.is_active = False
        await db.flush()

        resp = await client.get(
            f"/api/v1/dashboard/employees/{test_employee['id']}/summary",
            params={"period": "month", "reference": "2024-03-01"},
            headers=auth_headers,
        )
        assert resp.json()["data"]["rows"][0]["name"] == "B"

    async def test_empty_month(self, client, auth_headers, test_employee):
        resp = await client.get(
            f"/api/v1/dashboard/employees/{test_employee['id']}/summary",
            params={"period": "month", "reference": "2024-03-01"},
            headers=auth_headers,
        )
        data = resp.json()["data"]
        assert data["rows"] == []
        assert data["total_hours"] == 0.0
        assert data["monthly"] == []

    async def test_other_company_is_forbidden(
        self, client, db, auth_headers, other_company, test_employee,
    ):
        outsider = await add_employee(db, email="out@example.com", company_id=other_company["id"])

        resp = await client.get(
            f"/api/v1/dashboard/employees/{outsider['id']}/summary", headers=auth_headers,
        )
        assert resp.status_code == 403

    async def test_unknown_employee_is_404(self, client, admin_headers):
        resp = await client.get(
            f"/api/v1/dashboard/employees/{uuid.uuid4()}/summary", headers=admin_headers,
        )
        assert resp.status_code == 404

    async def test_invalid_period_is_422(self, client, auth_headers, test_employee):
        resp = await client.get(
            f"/api/v1/dashboard/employees/{test_employee['id']}/summary",
            params={"period": "week"},
            headers=auth_headers,
        )
        assert resp.status_code == 422
