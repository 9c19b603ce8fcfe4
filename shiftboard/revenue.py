from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from shiftboard.db import commit
from shiftboard.errors import NotFoundError, ValidationError
from shiftboard.guard import SubmissionGuard, get_guard, revenue_key
from shiftboard.models import RevenueEstimate

logger = logging.getLogger(__name__)

LATEST_LIMIT = 100


def _ensure_positive(amount: float) -> float:
    if amount is None or amount <= 0:
        raise ValidationError("estimatedRevenue must be greater than 0", field="estimatedRevenue")
    return float(amount)


def get_revenue(db: Session, day: date) -> RevenueEstimate | None:
    return db.scalar(select(RevenueEstimate).where(RevenueEstimate.date == day))


def list_revenue(db: Session, start: date | None = None, end: date | None = None) -> list[RevenueEstimate]:
    if start is None or end is None:
        query = select(RevenueEstimate).order_by(RevenueEstimate.date.desc()).limit(LATEST_LIMIT)
    else:
        query = (
            select(RevenueEstimate)
            .where(RevenueEstimate.date >= start, RevenueEstimate.date <= end)
            .order_by(RevenueEstimate.date.asc())
        )
    return list(db.scalars(query).all())


def revenue_by_date(db: Session, start: date, end: date) -> dict[date, float]:
    return {estimate.date: estimate.estimated_revenue for estimate in list_revenue(db, start, end)}


def _stage(db: Session, day: date, amount: float, notes: str | None) -> RevenueEstimate:
    estimate = get_revenue(db, day)
    if estimate is None:
        estimate = RevenueEstimate(date=day, estimated_revenue=amount, notes=notes)
        db.add(estimate)
    else:
        estimate.estimated_revenue = amount
        estimate.notes = notes
    return estimate


def upsert_revenue(
    db: Session,
    day: date,
    amount: float,
    notes: str | None = None,
    guard: SubmissionGuard | None = None,
) -> RevenueEstimate:
    amount = _ensure_positive(amount)
    guard = guard or get_guard()
    with guard.hold(revenue_key(day)):
        estimate = _stage(db, day, amount, notes)
        commit(db, "save the revenue estimate")
        db.refresh(estimate)
    return estimate


def bulk_apply_revenue(db: Session, days: list[date], amount: float, notes: str | None = None) -> list[RevenueEstimate]:
    amount = _ensure_positive(amount)
    estimates = [_stage(db, day, amount, notes) for day in days]
    commit(db, "apply the revenue estimate")
    for estimate in estimates:
        db.refresh(estimate)
    logger.info("Revenue %.0f applied to %d day(s)", amount, len(estimates))
    return estimates


def delete_revenue(db: Session, day: date) -> None:
    estimate = get_revenue(db, day)
    if estimate is None:
        raise NotFoundError(f"No revenue estimate exists for {day.isoformat()}", field="date")
    db.delete(estimate)
    commit(db, "delete the revenue estimate")
