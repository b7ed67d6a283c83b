from datetime import date

import pytest

from modules.rota.errors import ValidationError
from modules.rota.reports import month_bounds, monthly_report, percent_change, previous_month, yearly_report

STAFF = [
    {"id": "bob", "full_name": "Bob Brown", "hourly_rate": 11.0},
    {"id": "alice", "full_name": "Alice Adams", "hourly_rate": 12.5},
]


def attended(employee_id, day, start, end):
    return {
        "employee_id": employee_id,
        "date": day,
        "clock_in": f"{day}T{start}:00",
        "clock_out": f"{day}T{end}:00",
        "status": "Completed",
    }


RECORDS = [
    attended("alice", "2025-02-10", "09:00", "13:00"),
    attended("alice", "2025-03-03", "09:00", "17:00"),
    attended("bob", "2025-03-04", "10:00", "14:00"),
]


def test_month_helpers():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert previous_month(2025, 1) == (2024, 12)
    assert previous_month(2025, 3) == (2025, 2)


def test_percent_change():
    assert percent_change(12, 4) == 200.0
    assert percent_change(5, 0) == 0.0
    assert percent_change(3, 4) == -25.0


def test_monthly_report():
    report = monthly_report(RECORDS, STAFF, 2025, 3)

    assert "year" not in report
    assert report["month"] == "March"
    assert report["totalHours"] == 12
    assert report["totalCost"] == 144
    assert report["averageHours"] == 6
    assert report["averageCost"] == 72
    assert report["hoursChange"] == 200.0
    assert report["costChange"] == 188.0
    assert report["weeklyAverages"] == {"hours": 2.71, "cost": 32.52}
    assert [(d["employeeName"], d["regularHours"], d["totalPay"]) for d in report["details"]] == [
        ("Alice Adams", 8.0, 100.0),
        ("Bob Brown", 4.0, 44.0),
    ]


def test_empty_month_has_zero_averages():
    report = monthly_report([], STAFF, 2025, 4)
    assert report["totalHours"] == 0
    assert report["averageHours"] == 0
    assert report["details"] == []


def test_yearly_report():
    report = yearly_report(RECORDS, STAFF, 2025)

    assert report["year"] == 2025
    assert report["totalHours"] == 16
    assert report["totalCost"] == 194
    assert report["yearHoursChange"] == 0.0
    assert len(report["months"]) == 12
    assert report["months"][1] == {"month": "February", "totalHours": 4.0, "totalCost": 50.0}
    assert report["months"][2]["totalHours"] == 12


def test_period_is_validated():
    with pytest.raises(ValidationError):
        monthly_report(RECORDS, STAFF, 2025, 13)
    with pytest.raises(ValidationError):
        yearly_report(RECORDS, STAFF, 1899)


def test_reports_api(client, db, manager, alice, bob):
    db.tables.setdefault("attendance", []).extend([
        {**attended(alice.id, "2025-03-03", "09:00", "17:00"), "id": "a1"},
        {**attended(bob.id, "2025-03-04", "10:00", "14:00"), "id": "a2"},
    ])

    monthly = client.get("/api/reports/monthly/2025/3", headers=manager.headers).json()
    assert monthly["totalHours"] == 12
    assert monthly["totalCost"] == 144
    assert {d["employeeId"] for d in monthly["details"]} == {alice.id, bob.id}

    yearly = client.get("/api/reports/yearly/2025", headers=manager.headers).json()
    assert yearly["year"] == 2025
    assert yearly["months"][2]["totalCost"] == 144

    assert client.get("/api/reports/monthly/2025/13", headers=manager.headers).status_code == 400
    assert client.get("/api/reports/yearly/2025", headers=alice.headers).status_code == 403
