from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from modules.rota.errors import PermissionDeniedError, ValidationError
from modules.rota.shifts import ShiftStatus
from modules.rota.timeutils import parse_date, shift_start

HOLIDAY_CATEGORIES = ("Paid", "Unpaid")


def validate_holiday_dates(
    start_value: str,
    end_value: str,
    today: date
) -> Tuple[date, date]:
    """
    Both ends must fall on tomorrow or later and start must not pass end.

    Checks run in the order the booking form reports them, so a range that
    is both in the past and reversed is reported as being in the past.
    """
    start = parse_date(start_value)
    end = parse_date(end_value)

    if start is None:
        raise ValidationError("Invalid start date format (use YYYY-MM-DD)")
    if end is None:
        raise ValidationError("Invalid end date format (use YYYY-MM-DD)")

    tomorrow = today + timedelta(days=1)
    if start < tomorrow:
        raise ValidationError("Start date must be in the future")
    if end < tomorrow:
        raise ValidationError("End date must be in the future")
    if start > end:
        raise ValidationError("End date cannot be before start date")

    return start, end


def ensure_published(shift: Dict[str, Any]) -> None:
    """Employees only act on shifts they can see."""
    status = shift.get("status")
    if status == ShiftStatus.CANCELLED.value:
        raise ValidationError("This shift has been cancelled")
    if status != ShiftStatus.PUBLISHED.value:
        raise ValidationError("This shift has not been published yet")


def validate_sick_call(
    shift: Dict[str, Any],
    employee_id: str,
    now: datetime,
    min_notice_hours: int
) -> None:
    if employee_id not in (shift.get("employees") or []):
        raise PermissionDeniedError("You are not assigned to this shift")
    ensure_published(shift)

    deadline = shift_start(shift) - timedelta(hours=min_notice_hours)
    if now > deadline:
        raise ValidationError(
            f"Sick calls must be made at least {min_notice_hours} hours before the shift starts"
        )


def resolve_swap_target(
    current_shift: Dict[str, Any],
    target_shift: Dict[str, Any],
    requester_id: str,
    target_employee_id: Optional[str],
    now: datetime
) -> str:
    """
    Check a swap proposal and return the employee being swapped with.

    When the target shift has a single employee the target may be left out.
    """
    if str(current_shift["id"]) == str(target_shift["id"]):
        raise ValidationError("Choose two different shifts to swap")

    current_employees = current_shift.get("employees") or []
    target_employees = target_shift.get("employees") or []

    if requester_id not in current_employees:
        raise PermissionDeniedError("You are not assigned to the selected shift")
    if requester_id in target_employees:
        raise ValidationError("You are already assigned to the target shift")

    for shift in (current_shift, target_shift):
        if shift.get("status") == ShiftStatus.CANCELLED.value:
            raise ValidationError("Cancelled shifts cannot be swapped")
        ensure_published(shift)
        if shift_start(shift) <= now:
            raise ValidationError("Only future shifts can be swapped")

    if target_employee_id is None:
        if len(target_employees) != 1:
            raise ValidationError("targetEmployeeId is required when the target shift has several employees")
        target_employee_id = target_employees[0]

    if target_employee_id not in target_employees:
        raise ValidationError("Target employee is not assigned to the target shift")
    if target_employee_id in current_employees:
        raise ValidationError("Target employee is already assigned to your shift")

    return target_employee_id


def swapped_employees(
    current_shift: Dict[str, Any],
    target_shift: Dict[str, Any],
    requester_id: str,
    target_employee_id: str
) -> Tuple[list, list]:
    """Employee lists of both shifts after the exchange, order preserved."""
    current_after = [
        target_employee_id if employee_id == requester_id else employee_id
        for employee_id in current_shift.get("employees") or []
    ]
    target_after = [
        requester_id if employee_id == target_employee_id else employee_id
        for employee_id in target_shift.get("employees") or []
    ]
    return current_after, target_after


def reassigned_tasks(tasks: list, from_employee: str, to_employee: str) -> list:
    """Hand a departing employee's tasks to whoever takes their place."""
    return [
        {**task, "assigned_to": to_employee} if task.get("assigned_to") == from_employee else task
        for task in tasks or []
    ]
