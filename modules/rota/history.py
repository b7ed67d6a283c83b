from typing import Any, Dict, Iterable, List

from modules.rota.timeutils import parse_timestamp

ATTENDANCE = "Attendance"


def _clock(value) -> str:
    moment = parse_timestamp(value)
    return moment.strftime("%H:%M") if moment else ""


def attendance_item(record: Dict[str, Any]) -> Dict[str, Any]:
    status = record.get("status")
    if status == "Missed":
        subtitle = "Missed"
    elif record.get("clock_out"):
        subtitle = f"{_clock(record['clock_in'])} - {_clock(record['clock_out'])}"
    else:
        subtitle = f"{_clock(record.get('clock_in'))} - now"

    return {
        "id": record["id"],
        "type": ATTENDANCE,
        "date": str(record.get("clock_in") or record.get("date")),
        "title": "Shift",
        "subtitle": subtitle,
        "status": status,
        "employeeId": record.get("employee_id"),
    }


def leave_item(request: Dict[str, Any]) -> Dict[str, Any]:
    holiday = request.get("kind") == "holiday"
    start, end = str(request.get("start_date"))[:10], str(request.get("end_date"))[:10]
    return {
        "id": request["id"],
        "type": "Holiday" if holiday else "Sick Leave",
        "date": str(request.get("created_at")),
        "title": f"{'Holiday' if holiday else 'Sick leave'} request by {request.get('employee_name') or 'employee'}",
        "subtitle": start if start == end else f"{start} to {end}",
        "status": request.get("status"),
        "employeeId": request.get("employee_id"),
    }


def swap_item(request: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": request["id"],
        "type": "Shift Swap",
        "date": str(request.get("created_at")),
        "title": f"Shift swap request by {request.get('requester_name') or 'employee'}",
        "subtitle": request.get("reason") or "",
        "status": request.get("status"),
        "employeeId": request.get("requester_id"),
    }


def build_history(
    attendance: Iterable[Dict[str, Any]],
    leaves: Iterable[Dict[str, Any]],
    swaps: Iterable[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """One feed of worked shifts and request activity, newest first."""
    items = [attendance_item(r) for r in attendance]
    items += [leave_item(r) for r in leaves]
    items += [swap_item(r) for r in swaps]
    return sorted(items, key=lambda item: item["date"], reverse=True)
