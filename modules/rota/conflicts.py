"""
Shift overlap detection.

A shift occupies the half-open interval [start_time, end_time) on its date.
Two shifts conflict for an employee when both list that employee, neither is
cancelled, they fall on the same date and their intervals intersect. Equal
intervals conflict; back-to-back shifts (end == next start) do not.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from modules.rota.errors import ConflictError
from modules.rota.shifts import ShiftStatus
from modules.rota.timeutils import parse_date, to_minutes

CANCELLED = ShiftStatus.CANCELLED.value


@dataclass
class ShiftConflict:
    employee_id: str
    shift_id: Any
    date: str
    start_time: str
    end_time: str

    def describe(self) -> str:
        return (
            f"Employee {self.employee_id} already has a shift on {self.date} "
            f"from {self.start_time[:5]} to {self.end_time[:5]}"
        )


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open interval intersection on "HH:MM" strings."""
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(start_b) < to_minutes(end_a)


def find_conflicts(
    proposed: Dict[str, Any],
    existing: Iterable[Dict[str, Any]],
    ignore_shift_id: Optional[Any] = None
) -> List[ShiftConflict]:
    """
    Return every (employee, shift) pair in `existing` that clashes with `proposed`.

    `proposed` needs date, start_time, end_time and employees. Pass the id of
    the shift being edited as `ignore_shift_id` so it never clashes with itself.
    """
    proposed_date = parse_date(proposed["date"])
    proposed_employees = set(proposed.get("employees") or [])
    conflicts = []

    for shift in existing:
        if ignore_shift_id is not None and str(shift.get("id")) == str(ignore_shift_id):
            continue
        if shift.get("status") == CANCELLED:
            continue
        if parse_date(shift["date"]) != proposed_date:
            continue
        if not intervals_overlap(
            proposed["start_time"], proposed["end_time"],
            shift["start_time"], shift["end_time"]
        ):
            continue

        for employee_id in sorted(proposed_employees & set(shift.get("employees") or [])):
            conflicts.append(ShiftConflict(
                employee_id=employee_id,
                shift_id=shift.get("id"),
                date=str(shift["date"])[:10],
                start_time=shift["start_time"],
                end_time=shift["end_time"],
            ))

    return conflicts


def ensure_no_conflicts(
    proposed: Dict[str, Any],
    existing: Iterable[Dict[str, Any]],
    ignore_shift_id: Optional[Any] = None
) -> None:
    """Raise ConflictError naming the first clash, if any."""
    conflicts = find_conflicts(proposed, existing, ignore_shift_id=ignore_shift_id)
    if conflicts:
        raise ConflictError(conflicts[0].describe())
