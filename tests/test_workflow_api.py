from __future__ import annotations

from fastapi.testclient import TestClient

WEEK = {"startDate": "2026-02-02", "endDate": "2026-02-08"}


def submit(client: TestClient, **overrides) -> dict:
    body = {"employeeId": "emp-1", "date": "2026-02-02", "startTime": "08:00", "endTime": "12:00", "isOff": False}
    body.update(overrides)
    response = client.post("/api/preferences", json=body)
    assert response.status_code in (200, 201), response.text
    return response.json()


def decide(client: TestClient, preference_id: int, **body):
    return client.post(f"/api/preferences/{preference_id}/decision", json=body)


def preference_status(client: TestClient, preference_id: int) -> str:
    listed = client.get("/api/preferences", params=WEEK).json()
    return next(p["status"] for p in listed if p["id"] == preference_id)


def test_creating_shift_from_preference_approves_it(client, roster):
    preference = submit(client)

    created = client.post(
        "/api/shifts",
        json={
            "employeeId": "emp-1",
            "date": "2026-02-02",
            "start": "08:00",
            "end": "12:00",
            "preferenceId": preference["id"],
        },
    )
    assert created.status_code == 201
    shift = created.json()
    assert shift["hours"] == 4.0
    assert shift["status"] == "approved"
    assert shift["shiftType"] == "morning"
    assert shift["date"] == "2026-02-02"
    assert shift["preferenceId"] == preference["id"]
    assert shift["notes"] == "Position: N/A"
    assert preference_status(client, preference["id"]) == "approved"


def test_shift_for_another_employee_cannot_claim_preference(client, roster):
    preference = submit(client)
    response = client.post(
        "/api/shifts",
        json={"employeeId": "emp-2", "date": "2026-02-02", "start": "08:00", "end": "12:00", "preferenceId": preference["id"]},
    )
    assert response.status_code == 400
    assert response.json()["field"] == "preferenceId"
    assert client.get("/api/shifts", params=WEEK).json() == []


def test_scheduling_a_cell_directly_settles_its_pending_preference(client, roster):
    preference = submit(client)
    created = client.post(
        "/api/shifts",
        json={"employeeId": "emp-1", "date": "2026-02-02", "start": "09:00", "end": "13:00", "position": "Bar"},
    )
    assert created.status_code == 201
    assert created.json()["preferenceId"] == preference["id"]
    assert created.json()["notes"] == "Position: Bar"
    assert preference_status(client, preference["id"]) == "approved"


def test_approve_decision_uses_submitted_times(client, roster):
    preference = submit(client, startTime="13:00", endTime="17:30")

    response = decide(client, preference["id"], action="approve", notes="ok")
    assert response.status_code == 200
    body = response.json()
    assert body["preference"]["status"] == "approved"
    assert body["preference"]["decisionNote"] == "ok"
    assert len(body["shifts"]) == 1
    assert body["shifts"][0]["start"] == "13:00"
    assert body["shifts"][0]["end"] == "17:30"
    assert body["shifts"][0]["hours"] == 4.5
    assert body["shifts"][0]["shiftType"] == "afternoon"


def test_reject_keeps_note_and_creates_no_shift(client, roster):
    preference = submit(client)

    response = decide(client, preference["id"], action="reject", notes="cần người")
    assert response.status_code == 200
    body = response.json()
    assert body["preference"]["status"] == "rejected"
    assert body["preference"]["decisionNote"] == "cần người"
    assert body["shifts"] == []
    assert client.get("/api/shifts", params=WEEK).json() == []


def test_rejected_preference_cannot_be_approved(client, roster):
    preference = submit(client)
    decide(client, preference["id"], action="reject")

    response = decide(client, preference["id"], action="approve")
    assert response.status_code == 409
    assert preference_status(client, preference["id"]) == "rejected"
    assert client.get("/api/shifts", params=WEEK).json() == []


def test_approved_preference_cannot_be_rejected(client, roster):
    preference = submit(client)
    decide(client, preference["id"], action="approve")
    assert decide(client, preference["id"], action="reject").status_code == 409


def test_resubmission_reopens_a_rejected_preference(client, roster):
    preference = submit(client)
    decide(client, preference["id"], action="reject", notes="full")

    reopened = submit(client, startTime="10:00", endTime="14:00")
    assert reopened["status"] == "pending"
    assert reopened["decisionNote"] is None
    assert decide(client, preference["id"], action="approve").status_code == 200


def test_day_off_preference_needs_explicit_shift_times(client, roster):
    preference = submit(client, isOff=True)

    missing = decide(client, preference["id"], action="approve")
    assert missing.status_code == 400
    assert missing.json()["field"] == "start"
    assert preference_status(client, preference["id"]) == "pending"

    approved = decide(client, preference["id"], action="approve", shifts=[{"start": "17:00", "end": "22:00"}])
    assert approved.status_code == 200
    assert approved.json()["shifts"][0]["shiftType"] == "evening"
    assert approved.json()["shifts"][0]["hours"] == 5.0


def test_split_shift_approval_creates_linked_shifts(client, roster):
    preference = submit(client, startTime="08:00", endTime="22:00")

    response = decide(
        client,
        preference["id"],
        action="approve",
        shifts=[{"start": "08:00", "end": "12:00", "position": "Bar"}, {"start": "17:00", "end": "22:00"}],
    )
    assert response.status_code == 200
    shifts = response.json()["shifts"]
    assert [(s["start"], s["end"]) for s in shifts] == [("08:00", "12:00"), ("17:00", "22:00")]
    assert {s["preferenceId"] for s in shifts} == {preference["id"]}
    assert len(client.get("/api/shifts", params=WEEK).json()) == 2


def test_overlapping_split_is_rejected_without_partial_writes(client, roster):
    preference = submit(client, startTime="08:00", endTime="22:00")

    response = decide(
        client,
        preference["id"],
        action="approve",
        shifts=[{"start": "08:00", "end": "13:00"}, {"start": "12:00", "end": "16:00"}],
    )
    assert response.status_code == 400
    assert response.json()["field"] == "shifts"
    assert client.get("/api/shifts", params=WEEK).json() == []
    assert preference_status(client, preference["id"]) == "pending"


def test_approving_again_requires_additional_shifts(client, roster):
    preference = submit(client)
    decide(client, preference["id"], action="approve")

    assert decide(client, preference["id"], action="approve").status_code == 409
    extra = decide(client, preference["id"], action="approve", shifts=[{"start": "18:00", "end": "21:00"}])
    assert extra.status_code == 200
    assert len(client.get("/api/shifts", params=WEEK).json()) == 2


def test_resubmitting_after_approval_reopens_but_keeps_shifts(client, roster):
    preference = submit(client)
    decide(client, preference["id"], action="approve")

    reopened = submit(client, startTime="14:00", endTime="18:00")
    assert reopened["status"] == "pending"
    shifts = client.get("/api/shifts", params=WEEK).json()
    assert [(s["start"], s["end"]) for s in shifts] == [("08:00", "12:00")]


def test_withdrawing_an_approved_preference_unlinks_its_shifts(client, roster):
    preference = submit(client)
    decide(client, preference["id"], action="approve")

    deleted = client.request("DELETE", "/api/preferences", json={"id": preference["id"]})
    assert deleted.status_code == 200
    shifts = client.get("/api/shifts", params=WEEK).json()
    assert len(shifts) == 1
    assert shifts[0]["preferenceId"] is None


def test_decision_on_missing_preference_is_not_found(client, roster):
    assert decide(client, 404, action="approve").status_code == 404


def test_unknown_action_is_a_client_error(client, roster):
    preference = submit(client)
    response = decide(client, preference["id"], action="maybe")
    assert response.status_code == 400
    assert response.json()["field"] == "action"
