from __future__ import annotations

from datetime import date

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import shiftboard.main as main
from shiftboard.guard import get_guard, preference_key

BODY = {"employeeId": "emp-1", "date": "2026-02-02", "startTime": "08:00", "endTime": "12:00", "isOff": False}
DAY = {"startDate": "2026-02-02", "endDate": "2026-02-02"}


REAL_COMMIT = Session.commit


def failing_commit(self):
    raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


def test_failed_commit_returns_500_and_keeps_nothing(client, roster, monkeypatch):
    monkeypatch.setattr(Session, "commit", failing_commit)

    response = client.post("/api/preferences", json=BODY)

    assert response.status_code == 500
    assert response.json() == {"detail": "Could not save the shift preference"}
    assert not get_guard().is_held(preference_key("emp-1", date(2026, 2, 2)))

    monkeypatch.setattr(Session, "commit", REAL_COMMIT)
    assert client.get("/api/preferences", params=DAY).json() == []
    assert client.post("/api/preferences", json=BODY).status_code == 201


def test_failed_approval_leaves_preference_pending_and_no_shifts(client, roster, monkeypatch):
    preference = client.post("/api/preferences", json=BODY).json()
    monkeypatch.setattr(Session, "commit", failing_commit)

    response = client.post(f"/api/preferences/{preference['id']}/decision", json={"action": "approve"})

    assert response.status_code == 500
    monkeypatch.setattr(Session, "commit", REAL_COMMIT)
    assert client.get("/api/shifts", params=DAY).json() == []
    assert client.get("/api/preferences", params=DAY).json()[0]["status"] == "pending"


def test_unhandled_storage_error_is_a_generic_500(client, roster, monkeypatch):
    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(main, "list_preferences", unavailable)

    response = client.get("/api/preferences", params=DAY)

    assert response.status_code == 500
    assert response.json() == {"detail": "Storage is unavailable"}
