from enum import Enum
from typing import Any, Dict, List, Optional

from modules.rota.errors import ValidationError
from modules.rota.timeutils import is_valid_hhmm, parse_date, to_minutes


class ShiftStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    CANCELLED = "Cancelled"


ACTIVE_STATUSES = (ShiftStatus.DRAFT.value, ShiftStatus.PUBLISHED.value)


def normalize_shift(
    day: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str],
    employees: Optional[List[str]],
    tasks: Optional[List[Dict[str, Any]]]
) -> Dict[str, Any]:
    """
    Validate rota form fields and return the stored column values.

    Shifts stay within one day: start_time < end_time. Every task must be
    assigned to one of the shift's employees.
    """
    if not day or not start_time or not end_time:
        raise ValidationError("Date, Start Time, and End Time are required.")

    shift_date = parse_date(day)
    if shift_date is None:
        raise ValidationError("Invalid date format (use YYYY-MM-DD)")

    if not is_valid_hhmm(start_time) or not is_valid_hhmm(end_time):
        raise ValidationError("Invalid time format. Use HH:MM (24-hr). E.g. 09:00 or 13:30")
    if to_minutes(start_time) >= to_minutes(end_time):
        raise ValidationError("Start time must be before end time")

    if not tasks:
        raise ValidationError("At least one task is required.")

    unique_employees = []
    for employee_id in employees or []:
        if employee_id and employee_id not in unique_employees:
            unique_employees.append(str(employee_id))
    if not unique_employees:
        raise ValidationError("Please assign at least one employee.")

    normalized_tasks = []
    for task in tasks:
        description = (task.get("description") or "").strip()
        assigned_to = task.get("assignedTo") or task.get("assigned_to")
        if not description or not assigned_to:
            raise ValidationError("Task description and assignedTo are required.")
        if str(assigned_to) not in unique_employees:
            raise ValidationError(f"Task '{description}' is assigned to an employee not on this shift")
        normalized_tasks.append({"description": description, "assigned_to": str(assigned_to)})

    return {
        "date": shift_date.isoformat(),
        "start_time": start_time,
        "end_time": end_time,
        "employees": unique_employees,
        "tasks": normalized_tasks,
    }
