from datetime import timedelta
from typing import Any, Dict, Iterable

from modules.rota.timeutils import parse_timestamp, shift_end, shift_start

# Clocking in this long before a shift starts still counts towards it
CLOCK_IN_GRACE_MINUTES = 30


def covers_shift(
    record: Dict[str, Any],
    shift: Dict[str, Any],
    grace_minutes: int = CLOCK_IN_GRACE_MINUTES
) -> bool:
    """
    Whether an attendance record accounts for a shift.

    A record counts when it names the shift, or when its clock-in falls
    between `grace_minutes` before the shift starts and the shift's end.
    Clock-ins usually arrive without a shift id, so the window is what
    matters for most records.
    """
    if record.get("shift_id") is not None and str(record["shift_id"]) == str(shift["id"]):
        return True

    clock_in = parse_timestamp(record.get("clock_in"))
    if clock_in is None:
        return False
    opens = shift_start(shift) - timedelta(minutes=grace_minutes)
    return opens <= clock_in < shift_end(shift)


def attended_employees(records: Iterable[Dict[str, Any]], shift: Dict[str, Any]) -> set:
    """Employees of `shift` with a record covering it."""
    assigned = {str(e) for e in shift.get("employees") or []}
    return {
        str(record["employee_id"])
        for record in records
        if str(record.get("employee_id")) in assigned and covers_shift(record, shift)
    }
