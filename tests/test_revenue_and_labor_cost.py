from __future__ import annotations

from datetime import date

import pytest

from shiftboard.analytics import Rates, cost_band, day_labor_cost, hours_by_tier, labor_cost_percent
from shiftboard.employees import EmployeeInfo

DAY = {"startDate": "2026-02-02", "endDate": "2026-02-02"}


def add_shift(client, employee_id: str, start: str, end: str, day: str = "2026-02-02") -> None:
    response = client.post("/api/shifts", json={"employeeId": employee_id, "date": day, "start": start, "end": end})
    assert response.status_code == 201, response.text


def test_revenue_upsert_is_keyed_by_date(client):
    first = client.post("/api/revenue-estimates", json={"date": "2026-02-02", "estimatedRevenue": 8_000_000})
    assert first.status_code == 200
    second = client.post(
        "/api/revenue-estimates",
        json={"date": "2026-02-02", "estimatedRevenue": 12_000_000, "notes": "Tết"},
    )
    assert second.json()["id"] == first.json()["id"]

    fetched = client.get("/api/revenue-estimates", params={"date": "2026-02-02"}).json()
    assert fetched["estimatedRevenue"] == 12_000_000
    assert fetched["notes"] == "Tết"
    assert client.get("/api/revenue-estimates", params={"date": "2026-02-03"}).json() is None


@pytest.mark.parametrize("amount", [0, -5])
def test_revenue_must_be_positive(client, amount):
    response = client.post("/api/revenue-estimates", json={"date": "2026-02-02", "estimatedRevenue": amount})
    assert response.status_code == 400
    assert response.json()["field"] == "estimatedRevenue"


def test_bulk_apply_and_range_listing(client):
    response = client.put(
        "/api/revenue-estimates",
        json={"dates": ["2026-02-04", "2026-02-02", "2026-02-04"], "estimatedRevenue": 9_000_000},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["count"] == 2

    listed = client.get("/api/revenue-estimates", params={"startDate": "2026-02-01", "endDate": "2026-02-28"}).json()
    assert [e["date"] for e in listed] == ["2026-02-02", "2026-02-04"]

    latest = client.get("/api/revenue-estimates").json()
    assert [e["date"] for e in latest] == ["2026-02-04", "2026-02-02"]


def test_delete_revenue(client):
    client.post("/api/revenue-estimates", json={"date": "2026-02-02", "estimatedRevenue": 8_000_000})
    assert client.delete("/api/revenue-estimates", params={"date": "2026-02-02"}).status_code == 200
    missing = client.delete("/api/revenue-estimates", params={"date": "2026-02-02"})
    assert missing.status_code == 404
    assert missing.json()["field"] == "date"


def test_labor_cost_for_four_full_time_hours(client, roster):
    client.post("/api/revenue-estimates", json={"date": "2026-02-02", "estimatedRevenue": 10_000_000})
    add_shift(client, "emp-1", "08:00", "12:00")

    [day] = client.get("/api/labor-cost", params=DAY).json()
    assert day["fullTimeHours"] == 4.0
    assert day["casualHours"] == 0.0
    assert day["laborCost"] == 120_000
    assert day["percent"] == pytest.approx(1.2)
    assert day["revenueIsDefault"] is False
    assert day["band"] == "low"


def test_labor_cost_falls_back_to_default_revenue(client, roster):
    add_shift(client, "emp-2", "08:00", "18:00")

    [day] = client.get("/api/labor-cost", params=DAY).json()
    assert day["revenue"] == 10_000_000
    assert day["revenueIsDefault"] is True
    assert day["percent"] == pytest.approx(10 * 24_000 * 100 / 10_000_000)


def test_managerial_tiers_do_not_count(client, roster):
    add_shift(client, "mgr-1", "08:00", "17:00")
    add_shift(client, "emp-3", "08:00", "17:00")

    [day] = client.get("/api/labor-cost", params=DAY).json()
    assert day["laborCost"] == 0
    assert day["percent"] == 0


def test_labor_cost_covers_every_day_of_the_range(client, roster):
    add_shift(client, "emp-1", "08:00", "12:00", day="2026-02-03")
    days = client.get("/api/labor-cost", params={"startDate": "2026-02-02", "endDate": "2026-02-04"}).json()
    assert [d["date"] for d in days] == ["2026-02-02", "2026-02-03", "2026-02-04"]
    assert [d["fullTimeHours"] for d in days] == [0.0, 4.0, 0.0]


def test_percent_is_zero_without_positive_revenue():
    assert labor_cost_percent(8, 4, 0, Rates()) == 0
    assert labor_cost_percent(8, 4, -1, Rates()) == 0


def test_percent_grows_with_hours():
    rates = Rates()
    values = [labor_cost_percent(hours, 0, 5_000_000, rates) for hours in (0, 2, 4, 8)]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_hours_by_tier_ignores_unknown_and_managers():
    class Work:
        def __init__(self, employee_id, hours):
            self.employee_id = employee_id
            self.date = date(2026, 2, 2)
            self.hours = hours

    employees = {
        "ft": EmployeeInfo("ft", "FT", "staff"),
        "cl": EmployeeInfo("cl", "CL", "staff"),
        "boss": EmployeeInfo("boss", "FT", "manager"),
    }
    totals = hours_by_tier([Work("ft", 4), Work("cl", 2.5), Work("boss", 8), Work("gone", 3)], employees)
    assert totals == {"FT": 4, "CL": 2.5}


def test_day_labor_cost_only_counts_that_day():
    class Work:
        employee_id = "ft"
        hours = 6.0

        def __init__(self, day):
            self.date = day

    employees = {"ft": EmployeeInfo("ft", "FT", "staff")}
    result = day_labor_cost(
        date(2026, 2, 2), [Work(date(2026, 2, 2)), Work(date(2026, 2, 3))], employees, 1_800_000, 10_000_000, Rates()
    )
    assert result.full_time_hours == 6.0
    assert result.percent == pytest.approx(10.0)
    assert result.band == "good"


@pytest.mark.parametrize(
    ("percent", "band"),
    [(0, "low"), (7.99, "low"), (8, "good"), (12, "good"), (12.5, "elevated"), (15, "elevated"), (15.1, "high")],
)
def test_cost_band(percent, band):
    assert cost_band(percent) == band
