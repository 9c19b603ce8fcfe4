"""Labor-cost percentage per calendar day.

percent = (full-time hours * full-time rate + casual hours * casual rate) * 100 / revenue

Hours come from approved shifts (scheduled) or time logs (actual). Managerial tiers
are salaried and do not count. Nothing here is persisted; callers recompute
whenever the hours or a revenue estimate change.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Literal, Protocol

from sqlalchemy.orm import Session

from shiftboard.config import Settings
from shiftboard.employees import EmployeeDirectory, EmployeeInfo
from shiftboard.revenue import revenue_by_date
from shiftboard.shifts import list_shifts
from shiftboard.timelogs import list_time_logs
from shiftboard.timeutils import daterange

FULL_TIME = "FT"
CASUAL = "CL"

Band = Literal["low", "good", "elevated", "high"]
Basis = Literal["scheduled", "actual"]


class ScheduledWork(Protocol):
    employee_id: str
    date: date
    hours: float


@dataclass(frozen=True)
class Rates:
    full_time: float = 30_000
    casual: float = 24_000

    @classmethod
    def from_settings(cls, settings: Settings) -> Rates:
        return cls(full_time=settings.rate_full_time, casual=settings.rate_casual)


@dataclass(frozen=True)
class DayLaborCost:
    date: date
    full_time_hours: float
    casual_hours: float
    labor_cost: float
    revenue: float
    revenue_is_default: bool
    percent: float

    @property
    def band(self) -> Band:
        return cost_band(self.percent)


def cost_band(percent: float) -> Band:
    if percent > 15:
        return "high"
    if percent > 12:
        return "elevated"
    if percent >= 8:
        return "good"
    return "low"


def hours_by_tier(shifts: Iterable[ScheduledWork], employees: Mapping[str, EmployeeInfo]) -> dict[str, float]:
    totals = {FULL_TIME: 0.0, CASUAL: 0.0}
    for shift in shifts:
        employee = employees.get(shift.employee_id)
        if employee is None or employee.is_manager or employee.tier not in totals:
            continue
        totals[employee.tier] += shift.hours
    return totals


def labor_cost(full_time_hours: float, casual_hours: float, rates: Rates) -> float:
    return full_time_hours * rates.full_time + casual_hours * rates.casual


def labor_cost_percent(full_time_hours: float, casual_hours: float, revenue: float, rates: Rates) -> float:
    if revenue <= 0:
        return 0.0
    return labor_cost(full_time_hours, casual_hours, rates) * 100 / revenue


def day_labor_cost(
    day: date,
    shifts: Iterable[ScheduledWork],
    employees: Mapping[str, EmployeeInfo],
    revenue: float | None,
    default_revenue: float,
    rates: Rates,
) -> DayLaborCost:
    totals = hours_by_tier((s for s in shifts if s.date == day), employees)
    effective_revenue = revenue if revenue is not None else default_revenue
    return DayLaborCost(
        date=day,
        full_time_hours=totals[FULL_TIME],
        casual_hours=totals[CASUAL],
        labor_cost=labor_cost(totals[FULL_TIME], totals[CASUAL], rates),
        revenue=effective_revenue,
        revenue_is_default=revenue is None,
        percent=labor_cost_percent(totals[FULL_TIME], totals[CASUAL], effective_revenue, rates),
    )


def worked_entries(db: Session, start: date, end: date, basis: Basis = "scheduled") -> list[ScheduledWork]:
    """Approved shifts for planning, or logged time for what was actually worked."""
    if basis == "actual":
        return list_time_logs(db, start, end)
    return list_shifts(db, start, end)


def daily_labor_costs(
    db: Session,
    start: date,
    end: date,
    settings: Settings,
    basis: Basis = "scheduled",
) -> list[DayLaborCost]:
    entries = worked_entries(db, start, end, basis)
    employees = EmployeeDirectory(db).tiers({e.employee_id for e in entries})
    revenue = revenue_by_date(db, start, end)
    rates = Rates.from_settings(settings)
    return [
        day_labor_cost(day, entries, employees, revenue.get(day), settings.default_daily_revenue, rates)
        for day in daterange(start, end)
    ]
