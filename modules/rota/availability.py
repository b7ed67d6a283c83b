from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from modules.rota.errors import ValidationError
from modules.rota.timeutils import is_valid_hhmm, iter_dates, parse_date, to_minutes


class AvailabilityType(str, Enum):
    UNAVAILABLE = "unavailable"
    ALL_DAY = "allDay"
    CUSTOM = "custom"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"
    ON_HOLIDAY = "OnHoliday"


def check_availability(
    day: date,
    unavailable_dates: Iterable[str],
    holiday_dates: Iterable[str]
) -> AvailabilityStatus:
    """Holiday wins over plain unavailability."""
    day_str = day.isoformat()
    if day_str in set(holiday_dates):
        return AvailabilityStatus.ON_HOLIDAY
    if day_str in set(unavailable_dates):
        return AvailabilityStatus.UNAVAILABLE
    return AvailabilityStatus.AVAILABLE


def unavailable_dates_from(entries: Iterable[Dict[str, Any]]) -> List[str]:
    return sorted({
        str(entry["date"])[:10]
        for entry in entries
        if entry.get("type") == AvailabilityType.UNAVAILABLE.value
    })


def holiday_dates_from(leave_requests: Iterable[Dict[str, Any]]) -> List[str]:
    """Every day covered by an approved holiday."""
    days: Set[str] = set()
    for request in leave_requests:
        if request.get("kind") != "holiday" or request.get("status") != "Approved":
            continue
        start = parse_date(request["start_date"])
        end = parse_date(request["end_date"])
        if start is None or end is None:
            continue
        days.update(d.isoformat() for d in iter_dates(start, end))
    return sorted(days)


def normalize_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate one availability entry and return its stored shape.

    custom entries need both times as HH:MM with start < end; other types
    drop any times they were sent with.
    """
    day = parse_date(entry.get("date") or "")
    if day is None:
        raise ValidationError("Invalid date format (use YYYY-MM-DD)")

    raw_type = entry.get("type")
    try:
        entry_type = AvailabilityType(raw_type)
    except ValueError:
        raise ValidationError(f"Invalid availability type '{raw_type}'")

    normalized = {"date": day.isoformat(), "type": entry_type.value}

    if entry_type is AvailabilityType.CUSTOM:
        start_time = entry.get("startTime") or entry.get("start_time")
        end_time = entry.get("endTime") or entry.get("end_time")
        if not is_valid_hhmm(start_time) or not is_valid_hhmm(end_time):
            raise ValidationError("Invalid time format. Use HH:MM (24-hr). E.g. 09:00 or 13:30")
        if to_minutes(start_time) >= to_minutes(end_time):
            raise ValidationError("Start time must be before end time")
        normalized["start_time"] = start_time
        normalized["end_time"] = end_time

    return normalized


def normalize_entries(entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate a full availability map; one entry per date."""
    by_date: Dict[str, Dict[str, Any]] = {}
    for entry in entries:
        normalized = normalize_entry(entry)
        if normalized["date"] in by_date:
            raise ValidationError(f"Duplicate availability entry for {normalized['date']}")
        by_date[normalized["date"]] = normalized
    return [by_date[d] for d in sorted(by_date)]


def toggle_entry(
    current: Optional[Dict[str, Any]],
    requested: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """
    Resolve a day-option tap.

    Picking the type a date already has clears it (returns None); anything
    else replaces the entry.
    """
    normalized = normalize_entry(requested)
    if current is not None and current.get("type") == normalized["type"]:
        return None
    return normalized
