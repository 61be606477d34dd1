"""Tests for work hours — input parsing, monthly split, entry endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from absence_tracker.common.exceptions import ValidationException
from absence_tracker.work_hours.models import MonthlyHoursSummary, WorkHoursEntry
from absence_tracker.work_hours.service import parse_hours_input, summarize_month
from tests.conftest import add_employee


def _entry(day: date, hours: str) -> SimpleNamespace:
    return SimpleNamespace(work_date=day, hours_worked=Decimal(hours))


# ═════════════════════════════════════════════════════════════════════
# parse_hours_input
# ═════════════════════════════════════════════════════════════════════


class TestParseHoursInput:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("8", Decimal("8.00")),
            ("10", Decimal("10.00")),
            ("7:30", Decimal("7.50")),
            ("07:45", Decimal("7.75")),
            ("0:20", Decimal("0.33")),
            (" 9:05 ", Decimal("9.08")),
            ("24:00", Decimal("24.00")),
        ],
    )
    def test_accepted_formats(self, raw, expected):
        assert parse_hours_input(raw) == expected

    @pytest.mark.parametrize("raw", ["25:00", "7:75", "24:30", "", "abc", "7.5", "7:5", "-1"])
    def test_rejected_input(self, raw):
        with pytest.raises(ValidationException) as exc_info:
            parse_hours_input(raw)
        assert "hours_input" in exc_info.value.errors


# ═════════════════════════════════════════════════════════════════════
# summarize_month
# ═════════════════════════════════════════════════════════════════════


class TestSummarizeMonth:

    def test_eleven_hour_day_split(self):
        totals = summarize_month([_entry(date(2024, 5, 6), "11")])

        assert totals.total_normal_hours == Decimal("8")
        assert totals.total_redistribution_hours == Decimal("2")
        assert totals.total_overtime_hours == Decimal("1")

    def test_short_days_are_all_normal(self):
        totals = summarize_month([
            _entry(date(2024, 5, 6), "6.5"),
            _entry(date(2024, 5, 7), "8"),
        ])

        assert totals.total_normal_hours == Decimal("14.5")
        assert totals.total_redistribution_hours == 0
        assert totals.total_overtime_hours == 0

    def test_split_is_per_day_not_per_month(self):
        totals = summarize_month([
            _entry(date(2024, 5, 6), "9"),
            _entry(date(2024, 5, 7), "9"),
            _entry(date(2024, 5, 8), "9"),
        ])

        assert totals.total_normal_hours == Decimal("24")
        assert totals.total_redistribution_hours == Decimal("3")
        assert totals.total_overtime_hours == 0

    def test_custom_redistribution_cap(self):
        totals = summarize_month([_entry(date(2024, 5, 6), "12")], redistribution_cap=Decimal("1"))

        assert totals.total_redistribution_hours == Decimal("1")
        assert totals.total_overtime_hours == Decimal("3")

    def test_empty_month(self):
        totals = summarize_month([])
        assert totals.total_normal_hours == 0


# ═════════════════════════════════════════════════════════════════════
# Endpoints
# ═════════════════════════════════════════════════════════════════════


class TestWorkHoursEndpoints:

    async def test_user_records_own_hours_and_summary_updates(
        self, client, db, auth_headers, test_employee,
    ):
        resp = await client.put(
            "/api/v1/work-hours/entries",
            json={
                "employee_id": str(test_employee["id"]),
                "work_date": "2024-05-06",
                "hours_input": "11:00",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert Decimal(resp.json()["data"]["hours_worked"]) == Decimal("11")

        resp = await client.get(
            "/api/v1/work-hours/summaries",
            params={"employee_id": str(test_employee["id"]), "year": 2024},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        summaries = resp.json()["data"]
        assert len(summaries) == 1
        assert summaries[0]["month"] == 5
        assert Decimal(summaries[0]["total_normal_hours"]) == 8
        assert Decimal(summaries[0]["total_redistribution_hours"]) == 2
        assert Decimal(summaries[0]["total_overtime_hours"]) == 1

    async def test_upsert_replaces_same_day(self, client, db, auth_headers, test_employee):
        body = {
            "employee_id": str(test_employee["id"]),
            "work_date": "2024-05-06",
            "hours_input": "8",
        }
        await client.put("/api/v1/work-hours/entries", json=body, headers=auth_headers)
        body["hours_input"] = "7:30"
        resp = await client.put("/api/v1/work-hours/entries", json=body, headers=auth_headers)
        assert resp.status_code == 200

        count = await db.execute(
            select(func.count(WorkHoursEntry.id)).where(
                WorkHoursEntry.employee_id == test_employee["id"]
            )
        )
        assert count.scalar_one() == 1

        resp = await client.get(
            "/api/v1/work-hours/entries",
            params={"employee_id": str(test_employee["id"]), "year": 2024, "month": 5},
            headers=auth_headers,
        )
        entries = resp.json()["data"]
        assert [e["hours_input"] for e in entries] == ["7:30"]

    async def test_invalid_hours_is_422(self, client, auth_headers, test_employee):
        resp = await client.put(
            "/api/v1/work-hours/entries",
            json={
                "employee_id": str(test_employee["id"]),
                "work_date": "2024-05-06",
                "hours_input": "7:75",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert "hours_input" in resp.json()["errors"]

    async def test_user_cannot_write_colleague_hours(
        self, client, db, auth_headers, test_employee, test_company,
    ):
        colleague = await add_employee(
            db, email="marko@example.com", first_name="Marko",
            company_id=test_company["id"],
        )
        resp = await client.put(
            "/api/v1/work-hours/entries",
            json={
                "employee_id": str(colleague["id"]),
                "work_date": "2024-05-06",
                "hours_input": "8",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 403

    async def test_admin_writes_and_deletes_any_entry(
        self, client, db, admin_headers, test_employee,
    ):
        resp = await client.put(
            "/api/v1/work-hours/entries",
            json={
                "employee_id": str(test_employee["id"]),
                "work_date": "2024-06-03",
                "hours_input": "10",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        entry_id = resp.json()["data"]["id"]

        resp = await client.delete(f"/api/v1/work-hours/entries/{entry_id}", headers=admin_headers)
        assert resp.status_code == 200

        summary = await db.execute(
            select(MonthlyHoursSummary.total_normal_hours).where(
                MonthlyHoursSummary.employee_id == test_employee["id"],
                MonthlyHoursSummary.year == 2024,
                MonthlyHoursSummary.month == 6,
            )
        )
        assert summary.scalar_one() == 0

    async def test_delete_unknown_entry_is_404(self, client, admin_headers):
        resp = await client.delete(
            f"/api/v1/work-hours/entries/{uuid.uuid4()}", headers=admin_headers,
        )
        assert resp.status_code == 404
