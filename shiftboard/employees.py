from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from shiftboard.db import commit
from shiftboard.errors import NotFoundError, ValidationError
from shiftboard.models import EmployeeRecord
from shiftboard.schemas import Employee

MANAGERIAL_TIERS = frozenset({"SM", "SUP", "CAP"})


@dataclass(frozen=True)
class EmployeeInfo:
    id: str
    tier: str
    role: str

    @property
    def is_manager(self) -> bool:
        return self.role == "manager" or self.tier in MANAGERIAL_TIERS


class EmployeeDirectory:
    """Read-only view over the employees collection, as the workflow consumes it."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, employee_id: str) -> EmployeeInfo | None:
        record = self.db.get(EmployeeRecord, employee_id)
        if record is None:
            return None
        return EmployeeInfo(id=record.id, tier=record.tier, role=record.role)

    def get(self, employee_id: str) -> EmployeeInfo:
        info = self.find(employee_id)
        if info is None:
            raise NotFoundError(f"Employee {employee_id} no longer exists", field="employeeId")
        return info

    def tiers(self, employee_ids: set[str]) -> dict[str, EmployeeInfo]:
        if not employee_ids:
            return {}
        records = self.db.scalars(select(EmployeeRecord).where(EmployeeRecord.id.in_(employee_ids))).all()
        return {r.id: EmployeeInfo(id=r.id, tier=r.tier, role=r.role) for r in records}


def list_roster(db: Session) -> list[EmployeeRecord]:
    return list(db.scalars(select(EmployeeRecord).order_by(EmployeeRecord.sort_order, EmployeeRecord.id)).all())


def replace_roster(db: Session, employees: list[Employee]) -> list[EmployeeRecord]:
    employee_ids = [employee.id for employee in employees]
    if len(employee_ids) != len(set(employee_ids)):
        raise ValidationError("Employee ids must be unique", field="id")
    db.execute(delete(EmployeeRecord))
    for index, employee in enumerate(employees):
        db.add(
            EmployeeRecord(
                id=employee.id,
                name=employee.name,
                tier=employee.tier,
                role=employee.role,
                sort_order=index,
            )
        )
    commit(db, "replace the employee roster")
    return list_roster(db)
