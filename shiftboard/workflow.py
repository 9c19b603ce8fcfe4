"""Manager decisions on shift preferences.

Approval turns a pending preference into one or more confirmed shifts and marks
the preference approved in the same commit. Rejection only changes the
preference; the shift store is never touched.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack

from sqlalchemy.orm import Session

from shiftboard.db import commit
from shiftboard.errors import ConflictError, ValidationError
from shiftboard.guard import SubmissionGuard, get_guard, preference_key, shift_key
from shiftboard.models import Shift, ShiftPreference
from shiftboard.preferences import PreferenceEvent, PreferenceStatus, apply_event, get_preference, next_status
from shiftboard.schemas import PreferenceDecision, ShiftDraft
from shiftboard.shifts import build_shift
from shiftboard.timeutils import ensure_time_range, time_to_minutes

logger = logging.getLogger(__name__)


def approval_drafts(preference: ShiftPreference, drafts: list[ShiftDraft]) -> list[ShiftDraft]:
    """Shifts to create for an approval; defaults to the submitted times.

    A day-off preference carries no times, so approving it needs the manager to
    supply them explicitly rather than producing an empty shift.
    """
    if drafts:
        return drafts
    if preference.is_off or not preference.start_time or not preference.end_time:
        raise ValidationError(
            "start is required: the preference is a day-off request, supply shift times to approve it",
            field="start",
        )
    return [ShiftDraft(start=preference.start_time, end=preference.end_time, notes=None)]


def _ensure_no_overlap(ranges: list[tuple[str, str]]) -> None:
    ordered = sorted(ranges, key=lambda r: time_to_minutes(r[0]))
    for (_, prev_end), (next_start, _) in zip(ordered, ordered[1:]):
        if time_to_minutes(next_start) < time_to_minutes(prev_end):
            raise ValidationError("shifts must not overlap when splitting a day", field="shifts")


def approve_preference(
    db: Session,
    preference: ShiftPreference,
    drafts: list[ShiftDraft],
    notes: str | None = None,
    guard: SubmissionGuard | None = None,
) -> list[Shift]:
    next_status(preference.status, PreferenceEvent.APPROVE)
    if not drafts and preference.status == PreferenceStatus.APPROVED.value:
        raise ConflictError("Preference is already approved; supply shifts to add a split shift")
    drafts = approval_drafts(preference, drafts)
    ranges = [ensure_time_range(d.start, d.end) for d in drafts]
    _ensure_no_overlap(ranges)
    guard = guard or get_guard()
    with ExitStack() as held:
        for start, end in ranges:
            held.enter_context(guard.hold(shift_key(preference.employee_id, preference.date, start, end)))
        shifts = [
            build_shift(preference.employee_id, preference.date, start, end, draft.position, draft.notes, preference)
            for draft, (start, end) in zip(drafts, ranges)
        ]
        db.add_all(shifts)
        apply_event(preference, PreferenceEvent.APPROVE)
        preference.decision_note = notes
        commit(db, "approve the shift preference")
    for shift in shifts:
        db.refresh(shift)
    return shifts


def reject_preference(db: Session, preference: ShiftPreference, notes: str | None = None) -> ShiftPreference:
    apply_event(preference, PreferenceEvent.REJECT)
    preference.decision_note = notes
    commit(db, "reject the shift preference")
    return preference


def decide_preference(
    db: Session,
    preference_id: int,
    decision: PreferenceDecision,
    guard: SubmissionGuard | None = None,
) -> tuple[ShiftPreference, list[Shift]]:
    guard = guard or get_guard()
    preference = get_preference(db, preference_id)
    with guard.hold(preference_key(preference.employee_id, preference.date)):
        if decision.action == "reject":
            reject_preference(db, preference, decision.notes)
            shifts: list[Shift] = []
        else:
            shifts = approve_preference(db, preference, decision.shifts, decision.notes, guard)
        db.refresh(preference)
    logger.info("Preference %s %s with %d shift(s)", preference.id, preference.status, len(shifts))
    return preference, shifts
