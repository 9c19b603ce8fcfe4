from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Literal

from fastapi import Body, Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shiftboard.analytics import daily_labor_costs
from shiftboard.config import Settings, configure_logging, get_settings
from shiftboard.db import get_db, init_db
from shiftboard.employees import list_roster, replace_roster
from shiftboard.errors import DomainError, ValidationError
from shiftboard.holidays import get_holiday_provider
from shiftboard.preferences import list_preferences, submit_preference, update_preference, withdraw_preference
from shiftboard.revenue import bulk_apply_revenue, delete_revenue, get_revenue, list_revenue, upsert_revenue
from shiftboard.schemas import (
    DecisionOut,
    Employee,
    HolidayOut,
    IdPayload,
    LaborCostOut,
    PreferenceDecision,
    PreferenceOut,
    PreferencePatch,
    PreferenceSubmit,
    RevenueBulkIn,
    RevenueBulkOut,
    RevenueIn,
    RevenueOut,
    ShiftCreate,
    ShiftOut,
    ShiftPatch,
    TimeLogCreate,
    TimeLogOut,
    TimeLogPatch,
)
from shiftboard.shifts import create_shift, delete_shift, list_shifts, update_shift
from shiftboard.timelogs import create_time_log, delete_time_log, list_time_logs, update_time_log
from shiftboard.timeutils import resolve_range
from shiftboard.workflow import decide_preference

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    if settings.environment == "local":
        init_db()
    logger.info("shiftboard started (env=%s, tz=%s)", settings.environment, settings.timezone)
    yield


app = FastAPI(title="Shiftboard", lifespan=lifespan)


@app.middleware("http")
async def disable_cache_for_api(request: Request, call_next):
    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, max-age=0, must-revalidate"
        response.headers["Pragma"] = "no-cache"
    return response


@app.exception_handler(DomainError)
async def domain_error_handler(_: Request, exc: DomainError) -> JSONResponse:
    body: dict[str, str] = {"detail": exc.message}
    if exc.field:
        body["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or None
    message = first.get("msg", "Invalid request")
    body: dict[str, str] = {"detail": f"{field}: {message}" if field else message}
    if field:
        body["field"] = field
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(_: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Unhandled storage failure", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Storage is unavailable"})


def date_range(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    settings: Settings = Depends(get_settings),
) -> tuple[date, date]:
    return resolve_range(start_date, end_date, settings.tz)


@app.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, bool | str]:
    return {"ok": True, "env": settings.environment}


@app.get("/api/employees", response_model=list[Employee])
def get_employees(db: Session = Depends(get_db)) -> list[Employee]:
    return [Employee.model_validate(record) for record in list_roster(db)]


@app.put("/api/employees", response_model=list[Employee])
def put_employees(employees: list[Employee] = Body(...), db: Session = Depends(get_db)) -> list[Employee]:
    return [Employee.model_validate(record) for record in replace_roster(db, employees)]


@app.get("/api/preferences", response_model=list[PreferenceOut])
def get_preferences(
    employee_id: str | None = Query(default=None, alias="employeeId"),
    bounds: tuple[date, date] = Depends(date_range),
    db: Session = Depends(get_db),
) -> list[PreferenceOut]:
    start, end = bounds
    return [PreferenceOut.model_validate(p) for p in list_preferences(db, start, end, employee_id)]


@app.post("/api/preferences", response_model=PreferenceOut, status_code=status.HTTP_201_CREATED)
def post_preference(payload: PreferenceSubmit, response: Response, db: Session = Depends(get_db)) -> PreferenceOut:
    record, created = submit_preference(db, payload)
    if not created:
        response.status_code = status.HTTP_200_OK
    return PreferenceOut.model_validate(record)


@app.put("/api/preferences", response_model=PreferenceOut)
def put_preference(payload: PreferencePatch, db: Session = Depends(get_db)) -> PreferenceOut:
    return PreferenceOut.model_validate(update_preference(db, payload))


@app.delete("/api/preferences")
def delete_preference(payload: IdPayload, db: Session = Depends(get_db)) -> dict[str, bool]:
    withdraw_preference(db, payload.id)
    return {"ok": True}


@app.post("/api/preferences/{preference_id}/decision", response_model=DecisionOut)
def post_preference_decision(
    preference_id: int,
    payload: PreferenceDecision,
    db: Session = Depends(get_db),
) -> DecisionOut:
    preference, shifts = decide_preference(db, preference_id, payload)
    return DecisionOut(
        preference=PreferenceOut.model_validate(preference),
        shifts=[ShiftOut.model_validate(s) for s in shifts],
    )


@app.get("/api/shifts", response_model=list[ShiftOut])
def get_shifts(
    employee_id: str | None = Query(default=None, alias="employeeId"),
    bounds: tuple[date, date] = Depends(date_range),
    db: Session = Depends(get_db),
) -> list[ShiftOut]:
    start, end = bounds
    return [ShiftOut.model_validate(s) for s in list_shifts(db, start, end, employee_id)]


@app.post("/api/shifts", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
def post_shift(payload: ShiftCreate, db: Session = Depends(get_db)) -> ShiftOut:
    return ShiftOut.model_validate(create_shift(db, payload))


@app.put("/api/shifts", response_model=ShiftOut)
def put_shift(payload: ShiftPatch, db: Session = Depends(get_db)) -> ShiftOut:
    return ShiftOut.model_validate(update_shift(db, payload))


@app.delete("/api/shifts")
def remove_shift(
    shift_id: int | None = Query(default=None, alias="id"),
    payload: IdPayload | None = Body(default=None),
    db: Session = Depends(get_db),
) -> dict[str, bool]:
    target = payload.id if payload is not None else shift_id
    if target is None:
        raise ValidationError("id is required", field="id")
    delete_shift(db, target)
    return {"ok": True}


@app.get("/api/revenue-estimates", response_model=RevenueOut | list[RevenueOut] | None)
def get_revenue_estimates(
    day: date | None = Query(default=None, alias="date"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
) -> RevenueOut | list[RevenueOut] | None:
    if day is not None:
        estimate = get_revenue(db, day)
        return RevenueOut.model_validate(estimate) if estimate is not None else None
    if (start_date is None) != (end_date is None):
        raise ValidationError("startDate and endDate must be given together", field="startDate")
    return [RevenueOut.model_validate(e) for e in list_revenue(db, start_date, end_date)]


@app.post("/api/revenue-estimates", response_model=RevenueOut)
def post_revenue_estimate(payload: RevenueIn, db: Session = Depends(get_db)) -> RevenueOut:
    return RevenueOut.model_validate(upsert_revenue(db, payload.date, payload.estimated_revenue, payload.notes))


@app.put("/api/revenue-estimates", response_model=RevenueBulkOut)
def put_revenue_estimates(payload: RevenueBulkIn, db: Session = Depends(get_db)) -> RevenueBulkOut:
    estimates = bulk_apply_revenue(db, payload.dates, payload.estimated_revenue, payload.notes)
    return RevenueBulkOut(count=len(estimates), estimates=[RevenueOut.model_validate(e) for e in estimates])


@app.delete("/api/revenue-estimates")
def delete_revenue_estimate(day: date = Query(alias="date"), db: Session = Depends(get_db)) -> dict[str, bool]:
    delete_revenue(db, day)
    return {"ok": True}


@app.get("/api/time-logs", response_model=list[TimeLogOut])
def get_time_logs(
    employee_id: str | None = Query(default=None, alias="employeeId"),
    bounds: tuple[date, date] = Depends(date_range),
    db: Session = Depends(get_db),
) -> list[TimeLogOut]:
    start, end = bounds
    return [TimeLogOut.model_validate(log) for log in list_time_logs(db, start, end, employee_id)]


@app.post("/api/time-logs", response_model=TimeLogOut, status_code=status.HTTP_201_CREATED)
def post_time_log(payload: TimeLogCreate, db: Session = Depends(get_db)) -> TimeLogOut:
    return TimeLogOut.model_validate(create_time_log(db, payload))


@app.put("/api/time-logs", response_model=TimeLogOut)
def put_time_log(payload: TimeLogPatch, db: Session = Depends(get_db)) -> TimeLogOut:
    return TimeLogOut.model_validate(update_time_log(db, payload))


@app.delete("/api/time-logs")
def remove_time_log(time_log_id: int = Query(alias="id"), db: Session = Depends(get_db)) -> dict[str, bool]:
    delete_time_log(db, time_log_id)
    return {"ok": True}


@app.get("/api/labor-cost", response_model=list[LaborCostOut])
def get_labor_cost(
    basis: Literal["scheduled", "actual"] = Query(default="scheduled"),
    bounds: tuple[date, date] = Depends(date_range),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> list[LaborCostOut]:
    start, end = bounds
    return [
        LaborCostOut(
            date=day.date,
            full_time_hours=day.full_time_hours,
            casual_hours=day.casual_hours,
            labor_cost=day.labor_cost,
            revenue=day.revenue,
            revenue_is_default=day.revenue_is_default,
            percent=day.percent,
            band=day.band,
            basis=basis,
        )
        for day in daily_labor_costs(db, start, end, settings, basis)
    ]


@app.get("/api/holidays", response_model=list[HolidayOut])
def get_holidays(bounds: tuple[date, date] = Depends(date_range)) -> list[HolidayOut]:
    start, end = bounds
    return [HolidayOut.model_validate(h) for h in get_holiday_provider().get_holidays_in_range(start, end)]
