"""Actual worked hours, logged per employee and day.

A time log records what happened, independent of the approved schedule. The
``OFF`` position marks a day not worked: it carries no times and zero hours.
``total_hours`` is always derived here from the stored times.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftboard.db import commit
from shiftboard.employees import EmployeeDirectory
from shiftboard.errors import NotFoundError, ValidationError
from shiftboard.guard import SubmissionGuard, get_guard, time_log_key
from shiftboard.models import TimeLog
from shiftboard.schemas import TimeLogCreate, TimeLogPatch
from shiftboard.timeutils import duration_hours, ensure_time_range

logger = logging.getLogger(__name__)

OFF_POSITION = "OFF"


def normalize_position(position: str) -> str:
    position = (position or "").strip()
    if not position:
        raise ValidationError("position is required", field="position")
    return OFF_POSITION if position.upper() == OFF_POSITION else position


def worked_time(position: str, start: str | None, end: str | None) -> tuple[str | None, str | None, float]:
    if position == OFF_POSITION:
        return None, None, 0.0
    if not start:
        raise ValidationError("actualStart is required unless the position is OFF", field="actualStart")
    if not end:
        raise ValidationError("actualEnd is required unless the position is OFF", field="actualEnd")
    start, end = ensure_time_range(start, end, start_field="actualStart", end_field="actualEnd")
    return start, end, duration_hours(start, end)


def get_time_log(db: Session, time_log_id: int) -> TimeLog:
    record = db.get(TimeLog, time_log_id)
    if record is None:
        raise NotFoundError(f"Time log {time_log_id} no longer exists", field="id")
    return record


def list_time_logs(db: Session, start: date, end: date, employee_id: str | None = None) -> list[TimeLog]:
    query = select(TimeLog).where(TimeLog.date >= start, TimeLog.date <= end)
    if employee_id:
        query = query.where(TimeLog.employee_id == employee_id)
    query = query.order_by(TimeLog.date.desc(), TimeLog.employee_id.asc(), TimeLog.id.asc())
    return list(db.scalars(query).all())


def create_time_log(db: Session, payload: TimeLogCreate, guard: SubmissionGuard | None = None) -> TimeLog:
    position = normalize_position(payload.position)
    start, end, hours = worked_time(position, payload.actual_start, payload.actual_end)
    guard = guard or get_guard()
    with guard.hold(time_log_key(payload.employee_id, payload.date, position)):
        EmployeeDirectory(db).get(payload.employee_id)
        record = TimeLog(
            employee_id=payload.employee_id,
            date=payload.date,
            actual_start=start,
            actual_end=end,
            position=position,
            position_note=payload.position_note,
            notes=payload.notes,
            total_hours=hours,
        )
        db.add(record)
        commit(db, "save the time log")
        db.refresh(record)
    logger.info("Time log %s: %s worked %.2fh on %s (%s)", record.id, record.employee_id, hours, record.date, position)
    return record


def update_time_log(db: Session, patch: TimeLogPatch) -> TimeLog:
    fields = patch.model_fields_set - {"id"}
    if not fields:
        raise ValidationError("No updates were provided")
    record = get_time_log(db, patch.id)
    position = normalize_position(patch.position) if "position" in fields and patch.position else record.position
    start = patch.actual_start if "actual_start" in fields else record.actual_start
    end = patch.actual_end if "actual_end" in fields else record.actual_end
    start, end, hours = worked_time(position, start, end)

    record.position = position
    record.actual_start = start
    record.actual_end = end
    record.total_hours = hours
    if "position_note" in fields:
        record.position_note = patch.position_note
    if "notes" in fields:
        record.notes = patch.notes
    commit(db, "update the time log")
    db.refresh(record)
    return record


def delete_time_log(db: Session, time_log_id: int) -> None:
    record = get_time_log(db, time_log_id)
    db.delete(record)
    commit(db, "delete the time log")
    logger.info("Time log %s deleted for %s on %s", time_log_id, record.employee_id, record.date)
