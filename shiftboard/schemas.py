from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from shiftboard.errors import ValidationError
from shiftboard.timeutils import duration_hours, parse_day

Tier = Literal["SM", "SUP", "CAP", "FT", "CL"]
EmployeeRole = Literal["manager", "staff"]
PreferenceStatusName = Literal["pending", "approved", "rejected"]
ShiftTypeName = Literal["morning", "afternoon", "evening"]


def _calendar_day(value):
    if isinstance(value, str):
        try:
            return parse_day(value)
        except ValidationError as exc:
            raise ValueError(exc.message) from exc
    return value


# Dates cross the wire as YYYY-MM-DD only, so no timestamp can shift the day.
CalendarDay = Annotated[dt.date, BeforeValidator(_calendar_day)]


def _as_utc(value: dt.datetime) -> dt.datetime:
    # Stored as UTC; SQLite returns them without an offset.
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


UtcDateTime = Annotated[dt.datetime, AfterValidator(_as_utc)]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Employee(ApiModel):
    id: str
    name: str
    tier: Tier
    role: EmployeeRole = "staff"


class PreferenceSubmit(ApiModel):
    employee_id: str = Field(min_length=1)
    date: CalendarDay
    start_time: str | None = None
    end_time: str | None = None
    is_off: bool = False
    notes: str | None = None


class PreferencePatch(ApiModel):
    id: int
    start_time: str | None = None
    end_time: str | None = None
    is_off: bool | None = None
    notes: str | None = None


class IdPayload(ApiModel):
    id: int


class ShiftDraft(ApiModel):
    start: str
    end: str
    position: str | None = None
    notes: str | None = None


class PreferenceDecision(ApiModel):
    action: Literal["approve", "reject"]
    notes: str | None = None
    shifts: list[ShiftDraft] = Field(default_factory=list)


class PreferenceOut(ApiModel):
    id: int
    employee_id: str
    date: dt.date
    start_time: str | None = None
    end_time: str | None = None
    is_off: bool
    status: PreferenceStatusName
    notes: str | None = None
    decision_note: str | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime

    @computed_field
    @property
    def hours(self) -> float | None:
        if self.is_off or not self.start_time or not self.end_time:
            return None
        return duration_hours(self.start_time, self.end_time)


class ShiftCreate(ApiModel):
    employee_id: str = Field(min_length=1)
    date: CalendarDay
    start: str
    end: str
    position: str | None = None
    notes: str | None = None
    preference_id: int | None = None


class ShiftPatch(ApiModel):
    id: int
    start: str | None = None
    end: str | None = None
    position: str | None = None
    notes: str | None = None


class ShiftOut(ApiModel):
    id: int
    employee_id: str
    date: dt.date
    start: str
    end: str
    hours: float
    shift_type: ShiftTypeName
    status: Literal["approved"] = "approved"
    position: str | None = None
    notes: str | None = None
    preference_id: int | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


class DecisionOut(ApiModel):
    preference: PreferenceOut
    shifts: list[ShiftOut] = Field(default_factory=list)


class RevenueIn(ApiModel):
    date: CalendarDay
    estimated_revenue: float
    notes: str | None = None


class RevenueBulkIn(ApiModel):
    dates: list[CalendarDay] = Field(min_length=1)
    estimated_revenue: float
    notes: str | None = None

    @field_validator("dates")
    @classmethod
    def dedupe_dates(cls, value: list[dt.date]) -> list[dt.date]:
        return sorted(set(value))


class RevenueOut(ApiModel):
    id: int
    date: dt.date
    estimated_revenue: float
    notes: str | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


class RevenueBulkOut(ApiModel):
    success: bool = True
    count: int
    estimates: list[RevenueOut]


class TimeLogCreate(ApiModel):
    employee_id: str = Field(min_length=1)
    date: CalendarDay
    actual_start: str | None = None
    actual_end: str | None = None
    position: str = Field(min_length=1)
    position_note: str | None = None
    notes: str | None = None


class TimeLogPatch(ApiModel):
    id: int
    actual_start: str | None = None
    actual_end: str | None = None
    position: str | None = None
    position_note: str | None = None
    notes: str | None = None


class TimeLogOut(ApiModel):
    id: int
    employee_id: str
    date: dt.date
    actual_start: str | None = None
    actual_end: str | None = None
    position: str
    position_note: str | None = None
    notes: str | None = None
    total_hours: float
    created_at: UtcDateTime
    updated_at: UtcDateTime


class LaborCostOut(ApiModel):
    date: dt.date
    full_time_hours: float
    casual_hours: float
    labor_cost: float
    revenue: float
    revenue_is_default: bool
    percent: float
    band: Literal["low", "good", "elevated", "high"]
    basis: Literal["scheduled", "actual"] = "scheduled"


class HolidayOut(ApiModel):
    date: dt.date
    name: str
    type: Literal["public", "traditional", "commemorative"]
