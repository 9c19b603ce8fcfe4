from __future__ import annotations

import logging
from datetime import date
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftboard.db import commit
from shiftboard.employees import EmployeeDirectory
from shiftboard.errors import ConflictError, NotFoundError, ValidationError
from shiftboard.guard import SubmissionGuard, get_guard, preference_key
from shiftboard.models import ShiftPreference
from shiftboard.schemas import PreferencePatch, PreferenceSubmit
from shiftboard.timeutils import ensure_time_range

logger = logging.getLogger(__name__)


class PreferenceStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PreferenceEvent(str, Enum):
    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REJECT = "reject"


# Resubmission always reopens review. Approve stays valid on an approved record so a
# manager can add a second (split) shift for the same cell.
TRANSITIONS: dict[tuple[PreferenceStatus, PreferenceEvent], PreferenceStatus] = {
    (PreferenceStatus.PENDING, PreferenceEvent.RESUBMIT): PreferenceStatus.PENDING,
    (PreferenceStatus.APPROVED, PreferenceEvent.RESUBMIT): PreferenceStatus.PENDING,
    (PreferenceStatus.REJECTED, PreferenceEvent.RESUBMIT): PreferenceStatus.PENDING,
    (PreferenceStatus.PENDING, PreferenceEvent.APPROVE): PreferenceStatus.APPROVED,
    (PreferenceStatus.APPROVED, PreferenceEvent.APPROVE): PreferenceStatus.APPROVED,
    (PreferenceStatus.PENDING, PreferenceEvent.REJECT): PreferenceStatus.REJECTED,
    (PreferenceStatus.REJECTED, PreferenceEvent.REJECT): PreferenceStatus.REJECTED,
}


def can_apply(current: str, event: PreferenceEvent) -> bool:
    return (PreferenceStatus(current), event) in TRANSITIONS


def next_status(current: str, event: PreferenceEvent) -> PreferenceStatus:
    try:
        return TRANSITIONS[(PreferenceStatus(current), event)]
    except KeyError:
        raise ConflictError(f"Cannot {event.value} a preference that is already {current}") from None


def apply_event(record: ShiftPreference, event: PreferenceEvent) -> ShiftPreference:
    previous = record.status
    record.status = next_status(previous, event).value
    if previous != record.status:
        logger.info("Preference %s (%s %s): %s -> %s", record.id, record.employee_id, record.date, previous, record.status)
    return record


def validated_times(is_off: bool, start: str | None, end: str | None) -> tuple[str | None, str | None]:
    if is_off:
        return None, None
    if not start:
        raise ValidationError("startTime is required unless isOff is set", field="startTime")
    if not end:
        raise ValidationError("endTime is required unless isOff is set", field="endTime")
    return ensure_time_range(start, end, start_field="startTime", end_field="endTime")


def get_preference(db: Session, preference_id: int) -> ShiftPreference:
    record = db.get(ShiftPreference, preference_id)
    if record is None:
        raise NotFoundError(f"Shift preference {preference_id} no longer exists", field="id")
    return record


def find_preference(db: Session, employee_id: str, day: date) -> ShiftPreference | None:
    return db.scalar(
        select(ShiftPreference).where(ShiftPreference.employee_id == employee_id, ShiftPreference.date == day)
    )


def list_preferences(
    db: Session,
    start: date,
    end: date,
    employee_id: str | None = None,
) -> list[ShiftPreference]:
    query = select(ShiftPreference).where(ShiftPreference.date >= start, ShiftPreference.date <= end)
    if employee_id:
        query = query.where(ShiftPreference.employee_id == employee_id)
    query = query.order_by(ShiftPreference.date.asc(), ShiftPreference.employee_id.asc())
    return list(db.scalars(query).all())


def submit_preference(
    db: Session,
    payload: PreferenceSubmit,
    guard: SubmissionGuard | None = None,
) -> tuple[ShiftPreference, bool]:
    """Upsert the employee's preference for one day and reopen it for review.

    Returns the stored record and whether it was newly created.
    """
    start_time, end_time = validated_times(payload.is_off, payload.start_time, payload.end_time)
    guard = guard or get_guard()
    with guard.hold(preference_key(payload.employee_id, payload.date)):
        EmployeeDirectory(db).get(payload.employee_id)
        record = find_preference(db, payload.employee_id, payload.date)
        created = record is None
        if created:
            record = ShiftPreference(
                employee_id=payload.employee_id,
                date=payload.date,
                status=PreferenceStatus.PENDING.value,
            )
            db.add(record)
        else:
            apply_event(record, PreferenceEvent.RESUBMIT)
        record.start_time = start_time
        record.end_time = end_time
        record.is_off = payload.is_off
        record.notes = payload.notes
        record.decision_note = None
        commit(db, "save the shift preference")
        db.refresh(record)
    logger.info(
        "Preference %s %s for %s on %s",
        record.id,
        "created" if created else "resubmitted",
        record.employee_id,
        record.date,
    )
    return record, created


def update_preference(
    db: Session,
    patch: PreferencePatch,
    guard: SubmissionGuard | None = None,
) -> ShiftPreference:
    fields = patch.model_fields_set - {"id"}
    if not fields:
        raise ValidationError("No updates were provided")
    record = get_preference(db, patch.id)
    is_off = patch.is_off if "is_off" in fields and patch.is_off is not None else record.is_off
    start_time = patch.start_time if "start_time" in fields else record.start_time
    end_time = patch.end_time if "end_time" in fields else record.end_time
    start_time, end_time = validated_times(is_off, start_time, end_time)

    guard = guard or get_guard()
    with guard.hold(preference_key(record.employee_id, record.date)):
        apply_event(record, PreferenceEvent.RESUBMIT)
        record.is_off = is_off
        record.start_time = start_time
        record.end_time = end_time
        if "notes" in fields:
            record.notes = patch.notes
        record.decision_note = None
        commit(db, "update the shift preference")
        db.refresh(record)
    return record


def withdraw_preference(db: Session, preference_id: int, guard: SubmissionGuard | None = None) -> None:
    record = get_preference(db, preference_id)
    guard = guard or get_guard()
    with guard.hold(preference_key(record.employee_id, record.date)):
        db.delete(record)
        commit(db, "withdraw the shift preference")
    logger.info("Preference %s withdrawn by %s for %s", preference_id, record.employee_id, record.date)
