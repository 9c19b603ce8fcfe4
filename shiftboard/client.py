"""Client-side schedule state with optimistic writes.

Every mutation snapshots the cached state, applies the intended change right
away, then issues the request. A non-success response restores the snapshot;
a success replaces the guess with the server's record (ids, timestamps, hours).
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any

import httpx

from shiftboard.analytics import DayLaborCost, Rates, day_labor_cost
from shiftboard.employees import EmployeeInfo
from shiftboard.schemas import PreferenceOut, RevenueOut, ShiftOut
from shiftboard.timeutils import duration_hours, ensure_time_range, format_day, shift_type_for

logger = logging.getLogger(__name__)

TEMP_PREFIX = "tmp-"


class ApiError(Exception):
    def __init__(self, status_code: int, detail: str, field: str | None = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.field = field


class RequestInProgress(ApiError):
    """The server's duplicate guard is busy with the same write; retry after a moment."""


class RecordGone(ApiError):
    """The record was already removed, e.g. by another manager."""


def _raise_for_response(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    field = body.get("field") if isinstance(body, dict) else None
    detail = detail if isinstance(detail, str) else response.text or response.reason_phrase
    error_cls = {429: RequestInProgress, 404: RecordGone}.get(response.status_code, ApiError)
    raise error_cls(response.status_code, detail, field)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleClient:
    def __init__(
        self,
        http: httpx.Client,
        default_revenue: float = 10_000_000,
        rates: Rates | None = None,
    ):
        self.http = http
        self.default_revenue = default_revenue
        self.rates = rates or Rates()
        self.shifts: dict[Any, ShiftOut] = {}
        self.preferences: dict[Any, PreferenceOut] = {}
        self.revenue: dict[date, float] = {}
        self.employees: dict[str, EmployeeInfo] = {}

    # -- snapshots ---------------------------------------------------------

    def _snapshot(self) -> tuple[dict, dict, dict]:
        return copy.deepcopy((self.shifts, self.preferences, self.revenue))

    @contextmanager
    def _optimistic(self, action: str) -> Iterator[None]:
        snapshot = self._snapshot()
        try:
            yield
        except Exception:
            self.shifts, self.preferences, self.revenue = snapshot
            logger.warning("Rolled back optimistic %s", action)
            raise

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self.http.request(method, url, **kwargs)
        _raise_for_response(response)
        return response.json()

    @staticmethod
    def _temp_id() -> str:
        return f"{TEMP_PREFIX}{uuid.uuid4().hex[:12]}"

    # -- loading -----------------------------------------------------------

    def load_employees(self) -> None:
        rows = self._send("GET", "/api/employees")
        self.employees = {row["id"]: EmployeeInfo(id=row["id"], tier=row["tier"], role=row["role"]) for row in rows}

    def load_week(self, start: date, end: date, employee_id: str | None = None) -> None:
        params = {"startDate": format_day(start), "endDate": format_day(end)}
        if employee_id:
            params["employeeId"] = employee_id
        shifts = [ShiftOut.model_validate(row) for row in self._send("GET", "/api/shifts", params=params)]
        prefs = [PreferenceOut.model_validate(row) for row in self._send("GET", "/api/preferences", params=params)]
        revenue = [
            RevenueOut.model_validate(row)
            for row in self._send("GET", "/api/revenue-estimates", params={"startDate": params["startDate"], "endDate": params["endDate"]})
        ]
        self.shifts = {s.id: s for s in shifts}
        self.preferences = {p.id: p for p in prefs}
        self.revenue = {r.date: r.estimated_revenue for r in revenue}

    # -- preferences -------------------------------------------------------

    def preference_for(self, employee_id: str, day: date) -> PreferenceOut | None:
        for preference in self.preferences.values():
            if preference.employee_id == employee_id and preference.date == day:
                return preference
        return None

    def submit_preference(
        self,
        employee_id: str,
        day: date,
        start_time: str | None = None,
        end_time: str | None = None,
        is_off: bool = False,
        notes: str | None = None,
    ) -> PreferenceOut:
        body = {
            "employeeId": employee_id,
            "date": format_day(day),
            "startTime": None if is_off else start_time,
            "endTime": None if is_off else end_time,
            "isOff": is_off,
            "notes": notes,
        }
        with self._optimistic("preference submit"):
            existing = self.preference_for(employee_id, day)
            key = existing.id if existing is not None else self._temp_id()
            now = _now()
            self.preferences[key] = PreferenceOut(
                id=existing.id if existing is not None else 0,
                employee_id=employee_id,
                date=day,
                start_time=body["startTime"],
                end_time=body["endTime"],
                is_off=is_off,
                status="pending",
                notes=notes,
                created_at=existing.created_at if existing is not None else now,
                updated_at=now,
            )
            saved = PreferenceOut.model_validate(self._send("POST", "/api/preferences", json=body))
            del self.preferences[key]
            self.preferences[saved.id] = saved
        return saved

    def withdraw_preference(self, preference_id: int) -> None:
        with self._optimistic("preference withdraw"):
            self.preferences.pop(preference_id, None)
            self._send("DELETE", "/api/preferences", json={"id": preference_id})

    def approve_preference(self, preference_id: int, shifts: list[dict[str, str]] | None = None) -> list[ShiftOut]:
        return self._decide(preference_id, {"action": "approve", "shifts": shifts or []})

    def reject_preference(self, preference_id: int, notes: str | None = None) -> None:
        self._decide(preference_id, {"action": "reject", "notes": notes})

    def _decide(self, preference_id: int, body: dict[str, Any]) -> list[ShiftOut]:
        with self._optimistic(f"preference {body['action']}"):
            current = self.preferences.get(preference_id)
            guessed_status = "approved" if body["action"] == "approve" else "rejected"
            if current is not None:
                self.preferences[preference_id] = current.model_copy(update={"status": guessed_status})
            result = self._send("POST", f"/api/preferences/{preference_id}/decision", json=body)
            preference = PreferenceOut.model_validate(result["preference"])
            created = [ShiftOut.model_validate(row) for row in result["shifts"]]
            self.preferences[preference.id] = preference
            for shift in created:
                self.shifts[shift.id] = shift
        return created

    # -- shifts ------------------------------------------------------------

    def shifts_for(self, day: date) -> list[ShiftOut]:
        return [s for s in self.shifts.values() if s.date == day]

    def add_shift(
        self,
        employee_id: str,
        day: date,
        start: str,
        end: str,
        position: str | None = None,
        preference_id: int | None = None,
    ) -> ShiftOut:
        body: dict[str, Any] = {
            "employeeId": employee_id,
            "date": format_day(day),
            "start": start,
            "end": end,
            "position": position,
        }
        if preference_id is not None:
            body["preferenceId"] = preference_id
        with self._optimistic("shift create"):
            start, end = ensure_time_range(start, end)
            temp_id = self._temp_id()
            now = _now()
            self.shifts[temp_id] = ShiftOut(
                id=0,
                employee_id=employee_id,
                date=day,
                start=start,
                end=end,
                hours=duration_hours(start, end),
                shift_type=shift_type_for(start),
                position=position,
                preference_id=preference_id,
                created_at=now,
                updated_at=now,
            )
            saved = ShiftOut.model_validate(self._send("POST", "/api/shifts", json=body))
            del self.shifts[temp_id]
            self.shifts[saved.id] = saved
            linked = self.preferences.get(saved.preference_id) if saved.preference_id is not None else None
            if linked is not None:
                self.preferences[linked.id] = linked.model_copy(update={"status": "approved"})
        return saved

    def update_shift(self, shift_id: int, **changes: Any) -> ShiftOut:
        with self._optimistic("shift update"):
            current = self.shifts[shift_id]
            guess = current.model_copy(update={k: v for k, v in changes.items() if k in ("start", "end", "position", "notes")})
            if "start" in changes or "end" in changes:
                guess = guess.model_copy(
                    update={"hours": duration_hours(guess.start, guess.end), "shift_type": shift_type_for(guess.start)}
                )
            self.shifts[shift_id] = guess
            saved = ShiftOut.model_validate(self._send("PUT", "/api/shifts", json={"id": shift_id, **changes}))
            self.shifts[shift_id] = saved
        return saved

    def remove_shift(self, shift_id: int) -> None:
        with self._optimistic("shift delete"):
            self.shifts.pop(shift_id, None)
            self._send("DELETE", "/api/shifts", json={"id": shift_id})

    # -- revenue and labor cost -------------------------------------------

    def set_revenue(self, day: date, amount: float, notes: str | None = None) -> None:
        with self._optimistic("revenue save"):
            self.revenue[day] = amount
            saved = RevenueOut.model_validate(
                self._send(
                    "POST",
                    "/api/revenue-estimates",
                    json={"date": format_day(day), "estimatedRevenue": amount, "notes": notes},
                )
            )
            self.revenue[saved.date] = saved.estimated_revenue

    def labor_cost(self, day: date) -> DayLaborCost:
        return day_labor_cost(
            day,
            self.shifts.values(),
            self.employees,
            self.revenue.get(day),
            self.default_revenue,
            self.rates,
        )
