"""Absence aggregation — pure group-by/sum over absence records.

Turns a snapshot of absence records into per-type totals grouped three
ways (overall, per ``YYYY-MM`` month, per ``YYYY`` year) and derives the
numbers the employee summary shows: total hours, day equivalents and
per-type percentages.

Nothing here touches the database. Records may be ORM rows, pydantic
models or plain mappings; only ``absence_type_id``, ``date``, ``hours``
and ``status`` are read, and records are never modified.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Union

from pydantic import BaseModel, Field

from absence_tracker.common.constants import (
    DEFAULT_ABSENCE_HOURS,
    HOURS_PER_DAY,
    AbsenceStatus,
    SummaryPeriod,
)

TypeHours = dict[str, Decimal]

_ONE_DECIMAL = Decimal("0.1")
_ZERO = Decimal("0")


class AggregationResult(BaseModel):
    """Hours per absence type: overall, by ``YYYY-MM`` and by ``YYYY``."""

    total: TypeHours = Field(default_factory=dict)
    by_month: dict[str, TypeHours] = Field(default_factory=dict)
    by_year: dict[str, TypeHours] = Field(default_factory=dict)


class DerivedMetrics(BaseModel):
    total_hours: Decimal = _ZERO
    total_days: Decimal = _ZERO
    per_type_percentage: TypeHours = Field(default_factory=dict)


# ── Key helpers ─────────────────────────────────────────────────────

def _as_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Raises ValueError on anything that is not an ISO date or timestamp.
    return datetime.fromisoformat(str(value)).date()


def month_key(value: Union[date, datetime, str]) -> str:
    day = _as_date(value)
    return f"{day.year:04d}-{day.month:02d}"


def year_key(value: Union[date, datetime, str]) -> str:
    return f"{_as_date(value).year:04d}"


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _round1(value: Decimal) -> Decimal:
    return value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)


def _add(bucket: TypeHours, type_id: str, hours: Decimal) -> None:
    bucket[type_id] = bucket.get(type_id, _ZERO) + hours


# ── Operations ──────────────────────────────────────────────────────

def aggregate(records: Iterable[Any]) -> AggregationResult:
    """Fold approved records into total / by-month / by-year hour maps.

    Records that are not ``approved`` are skipped. Two records for the
    same employee and day are both counted.
    """
    result = AggregationResult()

    for record in records:
        if _field(record, "status") != AbsenceStatus.approved:
            continue

        record_date = _field(record, "date")
        m_key = month_key(record_date)
        y_key = year_key(record_date)
        type_id = str(_field(record, "absence_type_id"))

        hours = _field(record, "hours")
        hours = DEFAULT_ABSENCE_HOURS if hours is None else Decimal(str(hours))

        _add(result.total, type_id, hours)
        _add(result.by_month.setdefault(m_key, {}), type_id, hours)
        _add(result.by_year.setdefault(y_key, {}), type_id, hours)

    return result


def select_period(
    result: AggregationResult,
    period: Union[SummaryPeriod, str],
    reference_date: Union[date, datetime, str, None] = None,
) -> TypeHours:
    """Pick the hour map for *period*; an unknown month or year gives ``{}``."""
    period = SummaryPeriod(period)
    if period == SummaryPeriod.all:
        return result.total

    reference = _as_date(reference_date if reference_date is not None else date.today())
    if period == SummaryPeriod.month:
        return result.by_month.get(month_key(reference), {})
    return result.by_year.get(year_key(reference), {})


def compute_derived_metrics(period_data: Mapping[str, Any]) -> DerivedMetrics:
    """Total hours, day equivalents and per-type share (one decimal each)."""
    hours = {type_id: Decimal(str(value)) for type_id, value in period_data.items()}
    total_hours = sum(hours.values(), _ZERO)

    if total_hours == 0:
        percentages = {type_id: _ZERO for type_id in hours}
    else:
        percentages = {
            type_id: _round1(value / total_hours * 100)
            for type_id, value in hours.items()
        }

    return DerivedMetrics(
        total_hours=total_hours,
        total_days=to_days(total_hours),
        per_type_percentage=percentages,
    )


# ── Display helpers ─────────────────────────────────────────────────

def to_days(hours: Union[Decimal, int, float]) -> Decimal:
    return _round1(Decimal(str(hours)) / HOURS_PER_DAY)


def sorted_years(result: AggregationResult) -> list[str]:
    """Year keys, newest first."""
    return sorted(result.by_year, key=int, reverse=True)


def months_of_year(result: AggregationResult, year: Union[int, str]) -> list[tuple[str, TypeHours]]:
    """``(YYYY-MM, hours per type)`` for *year*, January first."""
    prefix = f"{int(year):04d}-"
    return sorted(
        (key, value) for key, value in result.by_month.items() if key.startswith(prefix)
    )
