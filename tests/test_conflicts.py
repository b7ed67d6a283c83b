import pytest

from modules.rota.conflicts import ensure_no_conflicts, find_conflicts, intervals_overlap
from modules.rota.errors import ConflictError


def make_shift(shift_id, day, start, end, employees, status="Published"):
    return {
        "id": shift_id,
        "date": day,
        "start_time": start,
        "end_time": end,
        "employees": employees,
        "status": status,
    }


def test_intervals_overlap_is_half_open():
    assert intervals_overlap("09:00", "13:00", "12:00", "17:00")
    assert intervals_overlap("09:00", "17:00", "09:00", "17:00")
    assert intervals_overlap("09:00", "17:00", "10:00", "11:00")
    assert not intervals_overlap("09:00", "13:00", "13:00", "17:00")
    assert not intervals_overlap("13:00", "17:00", "09:00", "13:00")


def test_overlap_on_same_date_is_reported():
    existing = [make_shift("s1", "2025-04-01", "09:00", "13:00", ["alice", "bob"])]
    proposed = make_shift(None, "2025-04-01", "12:00", "17:00", ["alice"])

    conflicts = find_conflicts(proposed, existing)

    assert len(conflicts) == 1
    assert conflicts[0].employee_id == "alice"
    assert conflicts[0].shift_id == "s1"
    assert "2025-04-01" in conflicts[0].describe()


def test_back_to_back_shifts_do_not_conflict():
    existing = [make_shift("s1", "2025-04-01", "09:00", "13:00", ["alice"])]
    proposed = make_shift(None, "2025-04-01", "13:00", "17:00", ["alice"])
    assert find_conflicts(proposed, existing) == []


def test_other_dates_and_other_employees_are_ignored():
    existing = [
        make_shift("s1", "2025-04-02", "09:00", "13:00", ["alice"]),
        make_shift("s2", "2025-04-01", "09:00", "13:00", ["bob"]),
    ]
    proposed = make_shift(None, "2025-04-01", "09:00", "13:00", ["alice"])
    assert find_conflicts(proposed, existing) == []


def test_cancelled_shifts_never_conflict():
    existing = [make_shift("s1", "2025-04-01", "09:00", "13:00", ["alice"], status="Cancelled")]
    proposed = make_shift(None, "2025-04-01", "10:00", "12:00", ["alice"])
    assert find_conflicts(proposed, existing) == []


def test_edited_shift_does_not_conflict_with_itself():
    existing = [make_shift("s1", "2025-04-01", "09:00", "13:00", ["alice"])]
    proposed = make_shift("s1", "2025-04-01", "10:00", "14:00", ["alice"])
    assert find_conflicts(proposed, existing, ignore_shift_id="s1") == []


def test_stored_times_with_seconds_are_compared():
    existing = [make_shift("s1", "2025-04-01", "09:00:00", "13:00:00", ["alice"])]
    proposed = make_shift(None, "2025-04-01", "12:30", "14:00", ["alice"])
    assert len(find_conflicts(proposed, existing)) == 1


def test_ensure_no_conflicts_raises_conflict_error():
    existing = [make_shift("s1", "2025-04-01", "09:00", "13:00", ["alice"])]
    proposed = make_shift(None, "2025-04-01", "09:00", "13:00", ["alice"])

    with pytest.raises(ConflictError) as excinfo:
        ensure_no_conflicts(proposed, existing)

    assert excinfo.value.status_code == 409
    assert "alice" in excinfo.value.message
