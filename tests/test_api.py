from __future__ import annotations

import pytest

from src.shift_booking.shift_booking.main import create_app

ADMIN = {"X-Actor-Id": "1", "X-Actor-Role": "admin"}
EMPLOYEE = {"X-Actor-Id": "5", "X-Actor-Role": "employee"}
OTHER_EMPLOYEE = {"X-Actor-Id": "6", "X-Actor-Role": "employee"}

# 2030-01-07 is a Monday
MONDAY = "2030-01-07"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    app = create_app()
    return app.test_client()


def _create_slot(client, **overrides):
    body = {"dayOfWeek": 1, "startTime": "08:00", "endTime": "12:00", "name": "Morning"}
    body.update(overrides)
    resp = client.post("/api/time-slots", json=body, headers=ADMIN)
    assert resp.status_code == 201
    return resp.get_json()["data"]


def test_missing_actor_is_forbidden(client):
    resp = client.get("/api/bookings")

    assert resp.status_code == 403
    assert resp.get_json() == {
        "success": False,
        "error": "forbidden",
        "message": "Missing or invalid X-Actor-Id header",
    }


def test_employee_cannot_manage_slots(client):
    resp = client.post("/api/time-slots", json={"dayOfWeek": 1, "startTime": "08:00", "endTime": "12:00"}, headers=EMPLOYEE)

    assert resp.status_code == 403


def test_settings_and_week(client):
    resp = client.put("/api/settings", json={"firstDayOfWeek": 1}, headers=ADMIN)
    assert resp.status_code == 200

    week = client.get("/api/settings/week?date=2030-01-10", headers=EMPLOYEE).get_json()["data"]

    assert week["startDate"] == MONDAY
    assert week["endDate"] == "2030-01-13"
    assert [d["dayOfWeek"] for d in week["days"]] == [1, 2, 3, 4, 5, 6, 0]

    bad = client.put("/api/settings", json={"firstDayOfWeek": 9}, headers=ADMIN)
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "validation_error"


def test_booking_lifecycle_over_http(client):
    slot = _create_slot(client, maxEmployees=1)
    assert client.get(f"/api/time-slots/{slot['id']}", headers=EMPLOYEE).get_json()["data"]["maxEmployees"] == 1

    created = client.post(
        "/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"]}, headers=EMPLOYEE
    )
    assert created.status_code == 201
    booking = created.get_json()["data"]
    assert booking["status"] == "pending"

    duplicate = client.post(
        "/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"]}, headers=EMPLOYEE
    )
    assert duplicate.status_code == 409
    assert duplicate.get_json()["error"] == "duplicate_booking"

    pending = client.get("/api/bookings/pending", headers=ADMIN).get_json()["data"]
    assert [b["id"] for b in pending] == [booking["id"]]

    approved = client.patch(f"/api/bookings/{booking['id']}/approve", headers=ADMIN)
    assert approved.get_json()["data"]["status"] == "approved"

    client.post("/api/bookings", json={"employeeId": 6, "date": MONDAY, "timeSlotId": slot["id"]}, headers=OTHER_EMPLOYEE)
    second_id = client.get("/api/bookings/pending", headers=ADMIN).get_json()["data"][0]["id"]
    full = client.patch(f"/api/bookings/{second_id}/approve", headers=ADMIN)
    assert full.status_code == 409
    assert full.get_json()["error"] == "capacity_exceeded"

    availability = client.post(
        "/api/time-slots/batch-availability", json={"date": MONDAY, "timeSlotIds": [slot["id"]]}, headers=EMPLOYEE
    ).get_json()["data"]
    assert availability == {str(slot["id"]): {"count": 1, "maxEmployees": 1, "available": False}}

    assert client.delete(f"/api/bookings/{booking['id']}", headers=OTHER_EMPLOYEE).status_code == 403
    assert client.delete(f"/api/bookings/{booking['id']}", headers=EMPLOYEE).status_code == 204
    assert client.get(f"/api/bookings/{booking['id']}", headers=ADMIN).status_code == 404


def test_reject_requires_reason_over_http(client):
    slot = _create_slot(client)
    booking = client.post(
        "/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"]}, headers=EMPLOYEE
    ).get_json()["data"]

    assert client.patch(f"/api/bookings/{booking['id']}/reject", json={}, headers=ADMIN).status_code == 400

    resp = client.patch(f"/api/bookings/{booking['id']}/reject", json={"reason": "no coverage"}, headers=ADMIN)
    assert resp.get_json()["data"]["rejectionReason"] == "no coverage"


def test_admin_booking_is_auto_approved(client):
    slot = _create_slot(client)

    resp = client.post("/api/bookings", json={"employeeId": 9, "date": MONDAY, "timeSlotId": slot["id"]}, headers=ADMIN)

    assert resp.get_json()["data"]["status"] == "approved"
    assert resp.get_json()["data"]["approvedBy"] == 1


def test_employee_sees_only_own_bookings(client):
    slot = _create_slot(client)
    client.post("/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"]}, headers=EMPLOYEE)
    client.post("/api/bookings", json={"employeeId": 6, "date": MONDAY, "timeSlotId": slot["id"]}, headers=OTHER_EMPLOYEE)

    mine = client.get("/api/bookings", headers=EMPLOYEE).get_json()["data"]

    assert [b["employeeId"] for b in mine] == [5]
    assert client.get("/api/bookings?employeeId=6", headers=EMPLOYEE).status_code == 403


def test_bulk_preview_and_apply(client):
    client.put("/api/settings", json={"firstDayOfWeek": 1}, headers=ADMIN)
    slot = _create_slot(client)
    body = {"date": "2030-01-09", "selections": {"5": {"0": [slot["id"]]}}}

    preview = client.post("/api/bookings/bulk/preview", json=body, headers=ADMIN).get_json()["data"]
    assert preview["toCreate"] == [{"employeeId": 5, "dayIndex": 0, "date": MONDAY, "timeSlotId": slot["id"]}]

    applied = client.post("/api/bookings/bulk", json=body, headers=ADMIN).get_json()
    assert applied["success"] is True
    assert len(applied["data"]["created"]) == 1
    assert applied["data"]["errors"] is None

    current = client.get("/api/bookings/bulk/selections?date=2030-01-09&employeeIds=5", headers=ADMIN).get_json()["data"]
    assert current["selections"] == {"5": {"0": [slot["id"]]}}

    cleared = client.post(
        "/api/bookings/bulk", json={"date": "2030-01-09", "selections": {"5": {}}}, headers=ADMIN
    ).get_json()["data"]
    assert len(cleared["cancelled"]) == 1


def test_weekly_request_for_self_only(client):
    slot = _create_slot(client)
    body = {"employeeId": 5, "date": MONDAY, "assignments": {"1": [slot["id"]]}}

    assert client.post("/api/bookings/weekly", json=body, headers=OTHER_EMPLOYEE).status_code == 403

    resp = client.post("/api/bookings/weekly", json=body, headers=EMPLOYEE)
    assert resp.status_code == 201
    assert [b["status"] for b in resp.get_json()["data"]["created"]] == ["pending"]


def test_slot_with_bookings_cannot_be_deleted(client):
    slot = _create_slot(client)
    client.post("/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"]}, headers=EMPLOYEE)

    resp = client.delete(f"/api/time-slots/{slot['id']}", headers=ADMIN)

    assert resp.status_code == 400


def test_invalid_limit_leaves_no_slot_behind(client):
    resp = client.post(
        "/api/time-slots",
        json={"dayOfWeek": 1, "startTime": "08:00", "endTime": "12:00", "maxEmployees": 0},
        headers=ADMIN,
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"
    assert client.get("/api/time-slots", headers=ADMIN).get_json()["data"] == []


def test_wrong_json_types_are_validation_errors(client):
    slot = _create_slot(client)

    notes = client.post(
        "/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"], "notes": 7}, headers=EMPLOYEE
    )
    assert notes.status_code == 400
    assert notes.get_json()["error"] == "validation_error"

    booking = client.post(
        "/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": slot["id"]}, headers=EMPLOYEE
    ).get_json()["data"]
    reason = client.patch(f"/api/bookings/{booking['id']}/reject", json={"reason": 123}, headers=ADMIN)
    assert reason.status_code == 400

    preview = client.post(
        "/api/bookings/bulk/preview", json={"date": MONDAY, "selections": {"5": {"0": 3}}}, headers=ADMIN
    )
    assert preview.status_code == 400
    assert preview.get_json()["error"] == "validation_error"


def test_update_pending_booking_over_http(client):
    morning = _create_slot(client)
    late = _create_slot(client, startTime="13:00", endTime="17:00", name="Late")
    booking = client.post(
        "/api/bookings", json={"employeeId": 5, "date": MONDAY, "timeSlotId": morning["id"]}, headers=EMPLOYEE
    ).get_json()["data"]

    forbidden = client.put(f"/api/bookings/{booking['id']}", json={"notes": "mine"}, headers=OTHER_EMPLOYEE)
    assert forbidden.status_code == 403

    resp = client.put(
        f"/api/bookings/{booking['id']}", json={"timeSlotId": late["id"], "notes": "swap"}, headers=EMPLOYEE
    )
    assert resp.status_code == 200
    updated = resp.get_json()["data"]
    assert (updated["timeSlotId"], updated["startTime"], updated["notes"]) == (late["id"], "13:00:00", "swap")

    client.patch(f"/api/bookings/{booking['id']}/approve", headers=ADMIN)
    assert client.put(f"/api/bookings/{booking['id']}", json={"notes": "x"}, headers=EMPLOYEE).status_code == 400


def test_booking_list_reports_truncation(client):
    slot = _create_slot(client)
    for employee_id in (5, 6, 7):
        client.post("/api/bookings", json={"employeeId": employee_id, "date": MONDAY, "timeSlotId": slot["id"]}, headers=ADMIN)

    page = client.get("/api/bookings?limit=2", headers=ADMIN).get_json()
    assert len(page["data"]) == 2
    assert page["meta"] == {"limit": 2, "truncated": True}

    everything = client.get("/api/bookings", headers=ADMIN).get_json()
    assert len(everything["data"]) == 3
    assert everything["meta"]["truncated"] is False

    assert client.get("/api/bookings?limit=0", headers=ADMIN).status_code == 400
    assert client.get("/api/bookings?limit=100000", headers=ADMIN).status_code == 400
