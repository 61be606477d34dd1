"""Tests for absences — types, the per-day upsert, status changes, calendar."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from absence_tracker.absences.models import AbsenceRecord
from absence_tracker.common.audit import AuditTrail
from absence_tracker.common.constants import AbsenceStatus
from tests.conftest import add_absence, add_employee


async def _count_records(db, employee_id) -> int:
    result = await db.execute(
        select(func.count(AbsenceRecord.id)).where(AbsenceRecord.employee_id == employee_id)
    )
    return result.scalar_one()


# ═════════════════════════════════════════════════════════════════════
# Absence types
# ═════════════════════════════════════════════════════════════════════


class TestAbsenceTypes:

    async def test_list_active_types_ordered_by_name(
        self, client, db, auth_headers, absence_types,
    ):
        from absence_tracker.absences.models import AbsenceType

        db.add(AbsenceType(id="X", name="Archived", color="#000000", is_active=False))
        await db.flush()

        resp = await client.get("/api/v1/absences/types", headers=auth_headers)
        assert resp.status_code == 200
        assert [t["name"] for t in resp.json()["data"]] == ["Sick leave", "Vacation"]

    async def test_admin_creates_type(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/absences/types",
            json={"id": "P", "name": "Paid leave", "color": "#3b82f6"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["id"] == "P"

    async def test_duplicate_type_code_is_409(self, client, admin_headers, absence_types):
        resp = await client.post(
            "/api/v1/absences/types",
            json={"id": "V", "name": "Vacation again"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    async def test_user_cannot_create_type(self, client, auth_headers):
        resp = await client.post(
            "/api/v1/absences/types",
            json={"id": "P", "name": "Paid leave"},
            headers=auth_headers,
        )
        assert resp.status_code == 403

    async def test_admin_deactivates_type(self, client, admin_headers, absence_types):
        resp = await client.put(
            "/api/v1/absences/types/B",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["is_active"] is False


# ═════════════════════════════════════════════════════════════════════
# Setting / clearing a day
# ═════════════════════════════════════════════════════════════════════


class TestSetAbsence:

    async def test_set_creates_approved_full_day(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        resp = await client.put(
            "/api/v1/absences/records",
            json={
                "employee_id": str(test_employee["id"]),
                "date": "2024-03-05",
                "absence_type_id": "V",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["absence_type_id"] == "V"
        assert data["status"] == "approved"
        assert Decimal(data["hours"]) == Decimal("8")

    async def test_set_twice_keeps_one_row(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        body = {
            "employee_id": str(test_employee["id"]),
            "date": "2024-03-05",
            "absence_type_id": "V",
        }
        await client.put("/api/v1/absences/records", json=body, headers=auth_headers)
        body["absence_type_id"] = "B"
        resp = await client.put("/api/v1/absences/records", json=body, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["data"]["absence_type_id"] == "B"
        assert await _count_records(db, test_employee["id"]) == 1

    async def test_set_none_removes_row(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        await add_absence(db, test_employee["id"], date(2024, 3, 5), "V")

        resp = await client.put(
            "/api/v1/absences/records",
            json={
                "employee_id": str(test_employee["id"]),
                "date": "2024-03-05",
                "absence_type_id": None,
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"] is None
        assert await _count_records(db, test_employee["id"]) == 0

    async def test_clearing_empty_day_is_noop(self, client, auth_headers, test_employee):
        resp = await client.put(
            "/api/v1/absences/records",
            json={"employee_id": str(test_employee["id"]), "date": "2024-03-05"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"] is None

    async def test_every_change_is_audited(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        body = {
            "employee_id": str(test_employee["id"]),
            "date": "2024-03-05",
            "absence_type_id": "V",
        }
        await client.put("/api/v1/absences/records", json=body, headers=auth_headers)
        body["absence_type_id"] = None
        await client.put("/api/v1/absences/records", json=body, headers=auth_headers)

        result = await db.execute(
            select(AuditTrail.action)
            .where(AuditTrail.entity_type == "absence_record")
        )
        assert sorted(result.scalars().all()) == ["create", "delete"]

    async def test_unknown_type_is_404(self, client, auth_headers, test_employee):
        resp = await client.put(
            "/api/v1/absences/records",
            json={
                "employee_id": str(test_employee["id"]),
                "date": "2024-03-05",
                "absence_type_id": "ZZ",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 404

    async def test_inactive_type_is_422(self, client, db, auth_headers, test_employee):
        from absence_tracker.absences.models import AbsenceType

        db.add(AbsenceType(id="X", name="Archived", color="#000000", is_active=False))
        await db.flush()

        resp = await client.put(
            "/api/v1/absences/records",
            json={
                "employee_id": str(test_employee["id"]),
                "date": "2024-03-05",
                "absence_type_id": "X",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 422

    async def test_user_cannot_touch_other_company(
        self, client, db, auth_headers, test_employee, other_company, absence_types,
    ):
        outsider = await add_employee(
            db, email="out@example.com", company_id=other_company["id"],
        )
        resp = await client.put(
            "/api/v1/absences/records",
            json={
                "employee_id": str(outsider["id"]),
                "date": "2024-03-05",
                "absence_type_id": "V",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 403

    async def test_requires_authentication(self, client):
        resp = await client.put(
            "/api/v1/absences/records",
            json={"employee_id": str(uuid.uuid4()), "date": "2024-03-05"},
        )
        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# Listing and review
# ═════════════════════════════════════════════════════════════════════


class TestRecords:

    async def test_list_filters_by_date_range(
        self, client, db, auth_headers, test_employee, absence_types,
    ):
        for day in (date(2024, 2, 28), date(2024, 3, 1), date(2024, 3, 31), date(2024, 4, 1)):
            await add_absence(db, test_employee["id"], day)

        resp = await client.get(
            "/api/v1/absences/records",
            params={"from": "2024-03-01", "to": "2024-03-31"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert [r["date"] for r in resp.json()["data"]] == ["2024-03-01", "2024-03-31"]

    async def test_user_only_sees_own_company(
        self, client, db, auth_headers, test_employee, other_company, absence_types,
    ):
        outsider = await add_employee(db, email="out@example.com", company_id=other_company["id"])
        await add_absence(db, test_employee["id"], date(2024, 3, 1))
        await add_absence(db, outsider["id"], date(2024, 3, 1))

        resp = await client.get("/api/v1/absences/records", headers=auth_headers)
        employee_ids = {r["employee_id"] for r in resp.json()["data"]}
        assert employee_ids == {str(test_employee["id"])}

    async def test_admin_rejects_record(
        self, client, db, admin_headers, test_employee, absence_types,
    ):
        await add_absence(db, test_employee["id"], date(2024, 3, 1), status=AbsenceStatus.pending)
        record_id = (
            await db.execute(
                select(AbsenceRecord.id).where(AbsenceRecord.employee_id == test_employee["id"])
            )
        ).scalar_one()

        resp = await client.patch(
            f"/api/v1/absences/records/{record_id}/status",
            json={"status": "rejected"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "rejected"

    async def test_user_cannot_review(self, client, auth_headers):
        resp = await client.patch(
            f"/api/v1/absences/records/{uuid.uuid4()}/status",
            json={"status": "approved"},
            headers=auth_headers,
        )
        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# Calendar
# ═════════════════════════════════════════════════════════════════════


class TestCalendar:

    async def test_month_grid(
        self, client, db, auth_headers, test_employee, test_company, absence_types,
    ):
        await add_employee(
            db, email="marko@example.com", first_name="Marko", company_id=test_company["id"],
        )
        await add_absence(db, test_employee["id"], date(2024, 2, 29), "B")
        await add_absence(db, test_employee["id"], date(2024, 3, 1), "V")

        resp = await client.get(
            "/api/v1/absences/calendar",
            params={"year": 2024, "month": 2},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert len(data["days"]) == 29
        rows = {row["first_name"]: row for row in data["employees"]}
        assert rows["Ana"]["absences"] == {"2024-02-29": "B"}
        assert rows["Marko"]["absences"] == {}

    async def test_search_filters_employees(
        self, client, db, auth_headers, test_employee, test_company,
    ):
        await add_employee(
            db, email="marko@example.com", first_name="Marko", company_id=test_company["id"],
        )
        resp = await client.get(
            "/api/v1/absences/calendar",
            params={"year": 2024, "month": 2, "search": "mar"},
            headers=auth_headers,
        )
        assert [row["first_name"] for row in resp.json()["data"]["employees"]] == ["Marko"]

    @pytest.mark.parametrize("month", [0, 13])
    async def test_invalid_month_is_422(self, client, auth_headers, month):
        resp = await client.get(
            "/api/v1/absences/calendar",
            params={"year": 2024, "month": month},
            headers=auth_headers,
        )
        assert resp.status_code == 422
