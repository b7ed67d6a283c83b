import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def is_valid_hhmm(value: Optional[str]) -> bool:
    """True for 24-hour "HH:MM" strings. "24:00", "9:00" and "13:60" are rejected."""
    if not isinstance(value, str):
        return False
    return HHMM_PATTERN.match(value) is not None


def to_minutes(value: str) -> int:
    """
    Minutes since midnight for "HH:MM".

    Postgres may hand back "HH:MM:SS" for stored times, so a trailing
    seconds part is accepted and ignored.
    """
    hhmm = value[:5]
    if not is_valid_hhmm(hhmm):
        raise ValueError(f"Invalid time '{value}' (use HH:MM, 24-hour)")
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def parse_date(value: Union[str, date]) -> Optional[date]:
    """Parse "YYYY-MM-DD" (or an ISO timestamp starting with one). Returns None when invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = DATE_PATTERN.match(value[:10])
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def shift_start(shift: dict) -> datetime:
    """Naive start datetime of a stored shift row."""
    day = parse_date(shift["date"])
    minutes = to_minutes(shift["start_time"])
    return datetime.combine(day, time(minutes // 60, minutes % 60))


def shift_end(shift: dict) -> datetime:
    day = parse_date(shift["date"])
    minutes = to_minutes(shift["end_time"])
    return datetime.combine(day, time(minutes // 60, minutes % 60))


def iter_dates(start: date, end: date):
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def week_bounds(day: date):
    """Monday and Sunday of the week containing `day`."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def parse_timestamp(value) -> Optional[datetime]:
    """Naive datetime from an ISO timestamp; any UTC offset is dropped."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    text = str(value).replace("Z", "+00:00")
    return datetime.fromisoformat(text).replace(tzinfo=None)
