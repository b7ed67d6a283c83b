from modules.rota.attendance import attended_employees, covers_shift

SHIFT = {
    "id": "s1",
    "date": "2025-04-01",
    "start_time": "09:00",
    "end_time": "17:00",
    "employees": ["alice", "bob"],
    "status": "Published",
}


def test_clock_in_inside_the_window_covers_the_shift():
    record = {"employee_id": "alice", "shift_id": None, "clock_in": "2025-04-01T09:02:00", "status": "Completed"}
    assert covers_shift(record, SHIFT)


def test_early_clock_in_within_grace_counts():
    assert covers_shift({"shift_id": None, "clock_in": "2025-04-01T08:31:00"}, SHIFT)
    assert not covers_shift({"shift_id": None, "clock_in": "2025-04-01T08:29:00"}, SHIFT)


def test_clock_in_after_the_shift_does_not_count():
    assert not covers_shift({"shift_id": None, "clock_in": "2025-04-01T17:00:00"}, SHIFT)
    assert not covers_shift({"shift_id": None, "clock_in": "2025-04-02T09:00:00"}, SHIFT)


def test_record_naming_the_shift_counts_without_clock_in():
    assert covers_shift({"shift_id": "s1", "clock_in": None, "status": "Missed"}, SHIFT)
    assert not covers_shift({"shift_id": "s2", "clock_in": None, "status": "Missed"}, SHIFT)


def test_attended_employees_ignores_other_staff():
    records = [
        {"employee_id": "alice", "shift_id": None, "clock_in": "2025-04-01T09:10:00+00:00"},
        {"employee_id": "carol", "shift_id": None, "clock_in": "2025-04-01T09:10:00"},
    ]
    assert attended_employees(records, SHIFT) == {"alice"}
