import calendar
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Tuple

from modules.rota.errors import ValidationError
from modules.rota.payroll import compute_pay, hours_in_period

MIN_YEAR = 2000
MAX_YEAR = 2100


def validate_period(year: int, month: int = 1) -> None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def percent_change(current: float, previous: float) -> float:
    """Change against the previous period, in percent. Zero when there is nothing to compare with."""
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def period_totals(
    records: List[Dict[str, Any]],
    staff: Iterable[Dict[str, Any]],
    start: date,
    end: date
) -> Dict[str, Any]:
    """Hours and labour cost per employee for one period, at each employee's hourly rate."""
    details = []
    for member in staff:
        own = [r for r in records if r.get("employee_id") == member["id"]]
        hours = hours_in_period(own, start, end)
        if not hours:
            continue
        rate = float(member.get("hourly_rate") or 0)
        details.append({
            "employeeId": member["id"],
            "employeeName": member.get("full_name"),
            "rate": rate,
            "regularHours": hours,
            "totalPay": compute_pay(hours, rate),
        })

    return {
        "totalHours": round(sum(d["regularHours"] for d in details), 2),
        "totalCost": round(sum(d["totalPay"] for d in details), 2),
        "details": sorted(details, key=lambda d: d["employeeName"] or ""),
    }


def weekly_averages(total_hours: float, total_cost: float, start: date, end: date) -> Dict[str, float]:
    weeks = ((end - start).days + 1) / 7
    return {
        "hours": round(total_hours / weeks, 2),
        "cost": round(total_cost / weeks, 2),
    }


def monthly_report(
    records: List[Dict[str, Any]],
    staff: List[Dict[str, Any]],
    year: int,
    month: int
) -> Dict[str, Any]:
    """
    Labour hours and cost for one month, compared with the month before.

    Carries no top-level `year` key; clients tell a yearly report from a
    monthly one by that key.
    """
    validate_period(year, month)
    start, end = month_bounds(year, month)
    current = period_totals(records, staff, start, end)
    before = period_totals(records, staff, *month_bounds(*previous_month(year, month)))

    worked = len(current["details"])
    return {
        "month": calendar.month_name[month],
        "periodStart": start.isoformat(),
        "periodEnd": end.isoformat(),
        "totalHours": current["totalHours"],
        "totalCost": current["totalCost"],
        "averageHours": round(current["totalHours"] / worked, 2) if worked else 0.0,
        "averageCost": round(current["totalCost"] / worked, 2) if worked else 0.0,
        "hoursChange": percent_change(current["totalHours"], before["totalHours"]),
        "costChange": percent_change(current["totalCost"], before["totalCost"]),
        "weeklyAverages": weekly_averages(current["totalHours"], current["totalCost"], start, end),
        "details": current["details"],
    }


def yearly_report(
    records: List[Dict[str, Any]],
    staff: List[Dict[str, Any]],
    year: int
) -> Dict[str, Any]:
    """Labour hours and cost for a year, month by month, compared with the year before."""
    validate_period(year)
    start, end = date(year, 1, 1), date(year, 12, 31)
    current = period_totals(records, staff, start, end)
    before = period_totals(records, staff, date(year - 1, 1, 1), start - timedelta(days=1))

    months = []
    for month in range(1, 13):
        totals = period_totals(records, staff, *month_bounds(year, month))
        months.append({
            "month": calendar.month_name[month],
            "totalHours": totals["totalHours"],
            "totalCost": totals["totalCost"],
        })

    return {
        "year": year,
        "totalHours": current["totalHours"],
        "totalCost": current["totalCost"],
        "yearHoursChange": percent_change(current["totalHours"], before["totalHours"]),
        "yearCostChange": percent_change(current["totalCost"], before["totalCost"]),
        "weeklyAverages": weekly_averages(current["totalHours"], current["totalCost"], start, end),
        "months": months,
    }
