from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftboard.db import commit
from shiftboard.employees import EmployeeDirectory
from shiftboard.errors import NotFoundError, ValidationError
from shiftboard.guard import SubmissionGuard, get_guard, shift_key
from shiftboard.models import Shift, ShiftPreference
from shiftboard.preferences import PreferenceEvent, apply_event, can_apply, find_preference, get_preference, next_status
from shiftboard.schemas import ShiftCreate, ShiftPatch
from shiftboard.timeutils import duration_hours, ensure_time_range, shift_type_for

logger = logging.getLogger(__name__)


def default_notes(position: str | None) -> str:
    return f"Position: {position or 'N/A'}"


def build_shift(
    employee_id: str,
    day: date,
    start: str,
    end: str,
    position: str | None = None,
    notes: str | None = None,
    preference: ShiftPreference | None = None,
) -> Shift:
    """Build an approved shift; hours and type always come from the validated times."""
    start, end = ensure_time_range(start, end)
    return Shift(
        employee_id=employee_id,
        date=day,
        start=start,
        end=end,
        hours=duration_hours(start, end),
        shift_type=shift_type_for(start),
        status="approved",
        position=position,
        notes=notes if notes is not None else default_notes(position),
        preference=preference,
    )


def get_shift(db: Session, shift_id: int) -> Shift:
    shift = db.get(Shift, shift_id)
    if shift is None:
        raise NotFoundError(f"Shift {shift_id} no longer exists", field="id")
    return shift


def list_shifts(db: Session, start: date, end: date, employee_id: str | None = None) -> list[Shift]:
    query = select(Shift).where(Shift.date >= start, Shift.date <= end)
    if employee_id:
        query = query.where(Shift.employee_id == employee_id)
    query = query.order_by(Shift.date.asc(), Shift.start.asc(), Shift.id.asc())
    return list(db.scalars(query).all())


def _preference_to_approve(
    db: Session,
    employee_id: str,
    day: date,
    preference_id: int | None,
) -> ShiftPreference | None:
    if preference_id is not None:
        preference = get_preference(db, preference_id)
        if preference.employee_id != employee_id or preference.date != day:
            raise ValidationError(
                "preferenceId belongs to a different employee or date than the shift",
                field="preferenceId",
            )
        next_status(preference.status, PreferenceEvent.APPROVE)
        return preference
    # Manager scheduling a cell directly still settles an open preference for it.
    preference = find_preference(db, employee_id, day)
    if preference is not None and can_apply(preference.status, PreferenceEvent.APPROVE):
        return preference
    return None


def create_shift(db: Session, payload: ShiftCreate, guard: SubmissionGuard | None = None) -> Shift:
    start, end = ensure_time_range(payload.start, payload.end)
    guard = guard or get_guard()
    with guard.hold(shift_key(payload.employee_id, payload.date, start, end)):
        EmployeeDirectory(db).get(payload.employee_id)
        preference = _preference_to_approve(db, payload.employee_id, payload.date, payload.preference_id)
        shift = build_shift(payload.employee_id, payload.date, start, end, payload.position, payload.notes, preference)
        db.add(shift)
        if preference is not None:
            apply_event(preference, PreferenceEvent.APPROVE)
        commit(db, "create the shift")
        db.refresh(shift)
    logger.info("Shift %s created for %s on %s %s-%s", shift.id, shift.employee_id, shift.date, shift.start, shift.end)
    return shift


def update_shift(db: Session, patch: ShiftPatch) -> Shift:
    fields = patch.model_fields_set - {"id"}
    if not fields:
        raise ValidationError("No updates were provided")
    shift = get_shift(db, patch.id)
    start = patch.start if "start" in fields and patch.start else shift.start
    end = patch.end if "end" in fields and patch.end else shift.end
    start, end = ensure_time_range(start, end)
    if (start, end) != (shift.start, shift.end):
        shift.start = start
        shift.end = end
        shift.hours = duration_hours(start, end)
        shift.shift_type = shift_type_for(start)
    if "position" in fields:
        shift.position = patch.position
        if "notes" not in fields:
            shift.notes = default_notes(patch.position)
    if "notes" in fields:
        shift.notes = patch.notes
    commit(db, "update the shift")
    db.refresh(shift)
    return shift


def delete_shift(db: Session, shift_id: int) -> None:
    shift = get_shift(db, shift_id)
    db.delete(shift)
    commit(db, "delete the shift")
    logger.info("Shift %s deleted for %s on %s", shift_id, shift.employee_id, shift.date)
