from datetime import date
from typing import Any, Dict, Iterable

from modules.rota.timeutils import parse_date, parse_timestamp


def worked_hours(record: Dict[str, Any]) -> float:
    """Hours between clock-in and clock-out; open or missed records count zero."""
    clock_in = parse_timestamp(record.get("clock_in"))
    clock_out = parse_timestamp(record.get("clock_out"))
    if clock_in is None or clock_out is None or clock_out <= clock_in:
        return 0.0
    return (clock_out - clock_in).total_seconds() / 3600


def record_day(record: Dict[str, Any]):
    clock_in = parse_timestamp(record.get("clock_in"))
    return clock_in.date() if clock_in else parse_date(record.get("date") or "")


def hours_in_period(
    records: Iterable[Dict[str, Any]],
    period_start: date,
    period_end: date
) -> float:
    """Sum of worked hours for records whose clock-in date falls in the period (inclusive)."""
    total = 0.0
    for record in records:
        day = record_day(record)
        if day is None or not (period_start <= day <= period_end):
            continue
        total += worked_hours(record)
    return round(total, 2)


def compute_pay(hours: float, rate: float) -> float:
    return round(hours * rate, 2)
