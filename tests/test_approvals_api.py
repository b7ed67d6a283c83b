from conftest import create_shift, days_ahead

DECIDE = "/api/approvals/requests/approveOrDeny"


def decide(client, manager, request_id, request_type, action):
    return client.post(
        DECIDE,
        json={"requestId": request_id, "requestType": request_type, "action": action},
        headers=manager.headers
    )


def book(client, employee, start, end, **extra):
    return client.post("/api/holidays/book", json={"startDate": start, "endDate": end, **extra}, headers=employee.headers)


def test_holiday_request_lifecycle(client, manager, alice):
    response = book(client, alice, days_ahead(10), days_ahead(12), reason="Wedding")
    assert response.status_code == 201
    request = response.json()["request"]
    assert request["status"] == "Pending"
    assert request["category"] == "Paid"

    everything = client.get("/api/approvals/getAllRequests", headers=manager.headers).json()
    assert [r["id"] for r in everything["holidays"]] == [request["id"]]
    assert everything["sickLeaves"] == []
    assert everything["shiftSwaps"] == []

    response = decide(client, manager, request["id"], "holiday", "approve")
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Approved"
    assert response.json()["request"]["decided_by"] == manager.id

    mine = client.get("/api/holidays/status", headers=alice.headers).json()
    assert mine[0]["status"] == "Approved"

    check = client.get(f"/api/availability/{alice.id}/check", params={"date": days_ahead(11)}, headers=alice.headers).json()
    assert check["status"] == "OnHoliday"


def test_request_can_only_be_decided_once(client, manager, alice):
    request = book(client, alice, days_ahead(10), days_ahead(10)).json()["request"]

    assert decide(client, manager, request["id"], "holiday", "deny").status_code == 200

    response = decide(client, manager, request["id"], "holiday", "approve")
    assert response.status_code == 409
    assert response.json()["success"] is False

    check = client.get(f"/api/availability/{alice.id}/check", params={"date": days_ahead(10)}, headers=alice.headers).json()
    assert check["status"] == "Available"


def test_only_managers_decide(client, alice):
    request = book(client, alice, days_ahead(10), days_ahead(10)).json()["request"]
    response = decide(client, alice, request["id"], "holiday", "approve")
    assert response.status_code == 403
    assert client.get("/api/approvals/getAllRequests", headers=alice.headers).status_code == 403


def test_decide_validates_type_and_action(client, manager, alice):
    request = book(client, alice, days_ahead(10), days_ahead(10)).json()["request"]
    assert decide(client, manager, request["id"], "overtime", "approve").status_code == 400
    assert decide(client, manager, request["id"], "holiday", "maybe").status_code == 400
    assert decide(client, manager, request["id"], "sickLeave", "approve").status_code == 404


def test_holiday_dates_are_validated(client, alice):
    response = book(client, alice, days_ahead(0), days_ahead(3))
    assert response.status_code == 400
    assert response.json()["message"] == "Start date must be in the future"

    response = book(client, alice, days_ahead(15), days_ahead(10))
    assert response.status_code == 400
    assert response.json()["message"] == "End date cannot be before start date"

    response = book(client, alice, days_ahead(10), days_ahead(11), type="Sabbatical")
    assert response.status_code == 400


def test_overlapping_holiday_is_rejected(client, alice):
    assert book(client, alice, days_ahead(10), days_ahead(14)).status_code == 201
    assert book(client, alice, days_ahead(13), days_ahead(16)).status_code == 409
    assert book(client, alice, days_ahead(15), days_ahead(16)).status_code == 201


def test_sick_call(client, manager, alice, bob):
    shift = create_shift(client, manager, days_ahead(2), "09:00", "17:00", [alice.id])

    response = client.post("/api/callInSick", json={"shiftId": shift["id"], "reason": "Flu"}, headers=alice.headers)
    assert response.status_code == 201
    request = response.json()["request"]
    assert request["kind"] == "sick"
    assert request["shift_id"] == shift["id"]
    assert request["start_date"] == days_ahead(2)

    duplicate = client.post("/api/callInSick", json={"shiftId": shift["id"]}, headers=alice.headers)
    assert duplicate.status_code == 409

    not_mine = client.post("/api/callInSick", json={"shiftId": shift["id"]}, headers=bob.headers)
    assert not_mine.status_code == 403

    response = decide(client, manager, request["id"], "sickLeave", "approve")
    assert response.status_code == 200

    # approved sick leave leaves the rota untouched
    assert client.get(f"/api/shifts/{shift['id']}", headers=manager.headers).json()["employees"] == [alice.id]


def test_sick_call_for_past_shift_is_rejected(client, manager, alice):
    shift = create_shift(client, manager, days_ahead(-1), "09:00", "17:00", [alice.id])
    response = client.post("/api/callInSick", json={"shiftId": shift["id"]}, headers=alice.headers)
    assert response.status_code == 400


def test_approved_swap_exchanges_assignments(client, manager, alice, bob):
    mine = create_shift(client, manager, days_ahead(3), "09:00", "13:00", [alice.id])
    theirs = create_shift(client, manager, days_ahead(4), "14:00", "18:00", [bob.id])

    response = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"], "reason": "Dentist"},
        headers=alice.headers
    )
    assert response.status_code == 201
    request = response.json()["request"]
    assert request["target_employee_id"] == bob.id

    duplicate = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"]},
        headers=alice.headers
    )
    assert duplicate.status_code == 409

    response = decide(client, manager, request["id"], "shiftSwap", "approve")
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Approved"

    mine_after = client.get(f"/api/shifts/{mine['id']}", headers=manager.headers).json()
    theirs_after = client.get(f"/api/shifts/{theirs['id']}", headers=manager.headers).json()
    assert mine_after["employees"] == [bob.id]
    assert theirs_after["employees"] == [alice.id]
    assert mine_after["tasks"][0]["assigned_to"] == bob.id
    assert theirs_after["tasks"][0]["assigned_to"] == alice.id
    assert mine_after["version"] == mine["version"] + 1
    assert theirs_after["version"] == theirs["version"] + 1


def test_swap_that_would_overlap_is_refused(client, manager, alice, bob):
    mine = create_shift(client, manager, days_ahead(3), "09:00", "13:00", [alice.id])
    theirs = create_shift(client, manager, days_ahead(4), "09:00", "13:00", [bob.id])

    request = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"]},
        headers=alice.headers
    ).json()["request"]

    # alice picks up another shift on bob's day after asking
    create_shift(client, manager, days_ahead(4), "11:00", "15:00", [alice.id])

    response = decide(client, manager, request["id"], "shiftSwap", "approve")
    assert response.status_code == 409

    pending = client.get("/api/approvals/getAllRequests", headers=manager.headers).json()["shiftSwaps"]
    assert pending[0]["status"] == "Pending"
    assert client.get(f"/api/shifts/{mine['id']}", headers=manager.headers).json()["employees"] == [alice.id]


def test_swap_after_concurrent_edit_is_refused(client, db, manager, alice, bob):
    mine = create_shift(client, manager, days_ahead(3), "09:00", "13:00", [alice.id])
    theirs = create_shift(client, manager, days_ahead(4), "09:00", "13:00", [bob.id])

    request = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"]},
        headers=alice.headers
    ).json()["request"]

    # someone else moves bob off the target shift in the meantime
    client.put(f"/api/schedules/{theirs['id']}", json={"employees": [alice.id], "tasks": [
        {"description": "Open the till", "assignedTo": alice.id}
    ]}, headers=manager.headers)

    response = decide(client, manager, request["id"], "shiftSwap", "approve")
    assert response.status_code == 409


def test_denied_swap_changes_nothing(client, manager, alice, bob):
    mine = create_shift(client, manager, days_ahead(3), "09:00", "13:00", [alice.id])
    theirs = create_shift(client, manager, days_ahead(4), "09:00", "13:00", [bob.id])
    request = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"]},
        headers=alice.headers
    ).json()["request"]

    response = decide(client, manager, request["id"], "shiftSwap", "deny")
    assert response.json()["request"]["status"] == "Denied"
    assert client.get(f"/api/shifts/{mine['id']}", headers=manager.headers).json()["employees"] == [alice.id]


def test_decisions_are_stored_as_notifications(client, manager, alice):
    request = book(client, alice, days_ahead(10), days_ahead(10)).json()["request"]
    decide(client, manager, request["id"], "holiday", "approve")

    body = client.get("/api/notifications", headers=alice.headers).json()
    assert body["unread_count"] == 1
    assert body["notifications"][0]["title"] == "Holiday request approved"
    assert body["notifications"][0]["related_id"] == request["id"]

    marked = client.put("/api/notifications/read-all", headers=alice.headers).json()
    assert marked["marked_count"] == 1
    assert client.get("/api/notifications", headers=alice.headers).json()["unread_count"] == 0


def test_holiday_over_a_rostered_day_cannot_be_approved(client, manager, alice):
    day = days_ahead(10)
    shift = create_shift(client, manager, day, "09:00", "17:00", [alice.id])
    request = book(client, alice, day, days_ahead(11)).json()["request"]

    response = decide(client, manager, request["id"], "holiday", "approve")
    assert response.status_code == 409
    assert day in response.json()["message"]

    pending = client.get("/api/holidays/status", headers=alice.headers).json()
    assert pending[0]["status"] == "Pending"
    assert client.get(f"/api/shifts/{shift['id']}", headers=manager.headers).json()["employees"] == [alice.id]

    # once the shift is cancelled the holiday goes through
    client.put(f"/api/schedules/{shift['id']}/cancel", headers=manager.headers)
    response = decide(client, manager, request["id"], "holiday", "approve")
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Approved"


def test_decision_stands_when_notification_cannot_be_stored(client, manager, alice, monkeypatch):
    from services.notifications_service import NotificationsService

    async def unavailable(self, notification_data):
        raise Exception("notifications table unavailable")

    monkeypatch.setattr(NotificationsService, "create_notification", unavailable)
    request = book(client, alice, days_ahead(10), days_ahead(10)).json()["request"]

    response = decide(client, manager, request["id"], "holiday", "approve")
    assert response.status_code == 200
    assert response.json()["request"]["status"] == "Approved"
    assert client.get("/api/holidays/status", headers=alice.headers).json()[0]["status"] == "Approved"


def test_swap_onto_the_requesters_holiday_is_refused(client, manager, alice, bob):
    mine = create_shift(client, manager, days_ahead(3), "09:00", "13:00", [alice.id])
    theirs = create_shift(client, manager, days_ahead(4), "09:00", "13:00", [bob.id])
    request = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"]},
        headers=alice.headers
    ).json()["request"]

    holiday = book(client, alice, days_ahead(4), days_ahead(4)).json()["request"]
    assert decide(client, manager, holiday["id"], "holiday", "approve").status_code == 200

    response = decide(client, manager, request["id"], "shiftSwap", "approve")
    assert response.status_code == 400
    assert "on holiday" in response.json()["message"]

    swaps = client.get("/api/approvals/getAllRequests", headers=manager.headers).json()["shiftSwaps"]
    assert swaps[0]["status"] == "Pending"
    assert client.get(f"/api/shifts/{theirs['id']}", headers=manager.headers).json()["employees"] == [bob.id]


def test_employees_act_only_on_published_shifts(client, manager, alice, bob):
    draft = create_shift(client, manager, days_ahead(3), "09:00", "13:00", [alice.id], publish=False)
    response = client.post("/api/callInSick", json={"shiftId": draft["id"]}, headers=alice.headers)
    assert response.status_code == 400
    assert response.json()["message"] == "This shift has not been published yet"

    theirs = create_shift(client, manager, days_ahead(4), "09:00", "13:00", [bob.id], publish=False)
    mine = create_shift(client, manager, days_ahead(5), "09:00", "13:00", [alice.id])
    response = client.post(
        "/api/requestSwap",
        json={"currentShiftId": mine["id"], "targetShiftId": theirs["id"]},
        headers=alice.headers
    )
    assert response.status_code == 400
