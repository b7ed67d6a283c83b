from datetime import date, datetime

import pytest

from modules.rota.errors import PermissionDeniedError, ValidationError
from modules.rota.leave_rules import (
    reassigned_tasks,
    resolve_swap_target,
    swapped_employees,
    validate_holiday_dates,
    validate_sick_call,
)

TODAY = date(2025, 3, 1)


def test_reversed_holiday_range_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        validate_holiday_dates("2025-03-25", "2025-03-20", TODAY)
    assert excinfo.value.message == "End date cannot be before start date"


def test_holiday_must_start_tomorrow_or_later():
    with pytest.raises(ValidationError) as excinfo:
        validate_holiday_dates("2025-03-01", "2025-03-05", TODAY)
    assert excinfo.value.message == "Start date must be in the future"

    assert validate_holiday_dates("2025-03-02", "2025-03-02", TODAY) == (date(2025, 3, 2), date(2025, 3, 2))


def test_holiday_accepts_iso_timestamps():
    start, end = validate_holiday_dates("2025-03-10T00:00:00.000Z", "2025-03-12T00:00:00.000Z", TODAY)
    assert (start, end) == (date(2025, 3, 10), date(2025, 3, 12))


def test_holiday_rejects_malformed_dates():
    with pytest.raises(ValidationError):
        validate_holiday_dates("25/03/2025", "2025-03-30", TODAY)
    with pytest.raises(ValidationError):
        validate_holiday_dates("2025-03-10", "2025-02-30", TODAY)


SHIFT = {
    "id": "s1",
    "date": "2025-04-01",
    "start_time": "12:00",
    "end_time": "18:00",
    "employees": ["alice"],
    "status": "Published",
}


def test_sick_call_needs_three_hours_notice():
    validate_sick_call(SHIFT, "alice", datetime(2025, 4, 1, 9, 0), 3)

    with pytest.raises(ValidationError):
        validate_sick_call(SHIFT, "alice", datetime(2025, 4, 1, 9, 1), 3)


def test_sick_call_only_for_own_shift():
    with pytest.raises(PermissionDeniedError):
        validate_sick_call(SHIFT, "bob", datetime(2025, 3, 30, 9, 0), 3)


def test_swap_target_defaults_to_only_employee():
    target = {**SHIFT, "id": "s2", "date": "2025-04-02", "employees": ["bob"]}
    assert resolve_swap_target(SHIFT, target, "alice", None, datetime(2025, 3, 30)) == "bob"


def test_swap_needs_future_shifts():
    target = {**SHIFT, "id": "s2", "employees": ["bob"]}
    with pytest.raises(ValidationError):
        resolve_swap_target(SHIFT, target, "alice", "bob", datetime(2025, 4, 1, 13, 0))


def test_swap_requires_requester_on_current_shift():
    target = {**SHIFT, "id": "s2", "employees": ["bob"]}
    with pytest.raises(PermissionDeniedError):
        resolve_swap_target(SHIFT, target, "carol", "bob", datetime(2025, 3, 30))


def test_swap_target_must_be_on_target_shift():
    target = {**SHIFT, "id": "s2", "employees": ["bob", "carol"]}
    with pytest.raises(ValidationError):
        resolve_swap_target(SHIFT, target, "alice", None, datetime(2025, 3, 30))
    with pytest.raises(ValidationError):
        resolve_swap_target(SHIFT, target, "alice", "dave", datetime(2025, 3, 30))


def test_swapped_employees_exchange_in_place():
    current = {**SHIFT, "employees": ["alice", "erin"]}
    target = {**SHIFT, "id": "s2", "employees": ["carol", "bob"]}

    current_after, target_after = swapped_employees(current, target, "alice", "bob")

    assert current_after == ["bob", "erin"]
    assert target_after == ["carol", "alice"]


def test_tasks_follow_the_swap():
    tasks = [
        {"description": "Open the till", "assigned_to": "alice"},
        {"description": "Stock the fridge", "assigned_to": "erin"},
    ]
    assert reassigned_tasks(tasks, "alice", "bob") == [
        {"description": "Open the till", "assigned_to": "bob"},
        {"description": "Stock the fridge", "assigned_to": "erin"},
    ]


def test_sick_call_needs_a_published_shift():
    with pytest.raises(ValidationError) as excinfo:
        validate_sick_call({**SHIFT, "status": "Draft"}, "alice", datetime(2025, 3, 30, 9, 0), 3)
    assert excinfo.value.message == "This shift has not been published yet"

    with pytest.raises(ValidationError):
        validate_sick_call({**SHIFT, "status": "Cancelled"}, "alice", datetime(2025, 3, 30, 9, 0), 3)


def test_swap_into_a_draft_shift_is_refused():
    target = {**SHIFT, "id": "s2", "date": "2025-04-02", "employees": ["bob"], "status": "Draft"}
    with pytest.raises(ValidationError) as excinfo:
        resolve_swap_target(SHIFT, target, "alice", "bob", datetime(2025, 3, 30))
    assert excinfo.value.message == "This shift has not been published yet"
