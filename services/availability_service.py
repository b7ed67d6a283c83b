import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from database.supabase_client import get_supabase
from modules.rota.availability import (
    AvailabilityStatus,
    check_availability,
    holiday_dates_from,
    normalize_entries,
    toggle_entry,
    unavailable_dates_from,
)
from modules.rota.errors import ConflictError, ValidationError
from modules.rota.locks import employee_locks
from modules.rota.shifts import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


def describe_shifts(shifts: List[Dict[str, Any]]) -> str:
    return ", ".join(
        f"{str(s['date'])[:10]} {str(s['start_time'])[:5]}-{str(s['end_time'])[:5]}"
        for s in shifts
    )


class AvailabilityService:
    def __init__(self):
        self.supabase = get_supabase()

    async def get_availability(self, employee_id: str) -> List[Dict[str, Any]]:
        """All availability entries for an employee, by date"""
        result = self.supabase.table("availability") \
            .select("*") \
            .eq("employee_id", employee_id) \
            .order("date") \
            .execute()
        return result.data or []

    async def rostered_shifts(self, employee_id: str, days: Iterable[str]) -> List[Dict[str, Any]]:
        """Draft or published shifts the employee holds on any of `days`"""
        wanted = sorted({str(d)[:10] for d in days})
        if not wanted:
            return []
        result = self.supabase.table("shifts") \
            .select("*") \
            .contains("employees", [employee_id]) \
            .in_("status", list(ACTIVE_STATUSES)) \
            .gte("date", wanted[0]) \
            .lte("date", wanted[-1]) \
            .order("date") \
            .order("start_time") \
            .execute()
        return [s for s in result.data or [] if str(s["date"])[:10] in wanted]

    async def ensure_not_rostered(self, employee_id: str, days: Iterable[str]) -> None:
        """
        Refuse to block out days the employee already holds shifts on.

        Callers hold the employee's lock so no shift can be assigned between
        this check and their write.
        """
        clashes = await self.rostered_shifts(employee_id, days)
        if clashes:
            raise ConflictError(
                f"Employee {employee_id} is rostered on {describe_shifts(clashes)}. "
                "Reassign or cancel those shifts first."
            )

    async def replace_availability(
        self,
        employee_id: str,
        entries: Iterable[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Replace the employee's whole availability map"""
        normalized = normalize_entries(entries)

        async with employee_locks.hold([employee_id]):
            before = set(unavailable_dates_from(await self.get_availability(employee_id)))
            newly_blocked = [d for d in unavailable_dates_from(normalized) if d not in before]
            await self.ensure_not_rostered(employee_id, newly_blocked)

            try:
                self.supabase.table("availability") \
                    .delete() \
                    .eq("employee_id", employee_id) \
                    .execute()

                if normalized:
                    rows = [{"employee_id": employee_id, **entry} for entry in normalized]
                    self.supabase.table("availability").insert(rows).execute()

            except Exception as e:
                logger.error(f"Replace availability error: {e}")
                raise e

        logger.info(f"Availability replaced for {employee_id}: {len(normalized)} entries")
        return await self.get_availability(employee_id)

    async def toggle_availability(
        self,
        employee_id: str,
        entry: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Set one date's entry, or clear it when the same type is picked again.

        Returns the stored entry, or None when the date was cleared.
        """
        day = entry.get("date")

        async with employee_locks.hold([employee_id]):
            existing = self.supabase.table("availability") \
                .select("*") \
                .eq("employee_id", employee_id) \
                .eq("date", day) \
                .execute()
            current = existing.data[0] if existing.data else None

            resolved = toggle_entry(current, entry)
            if resolved is not None and not unavailable_dates_from([current] if current else []):
                await self.ensure_not_rostered(employee_id, unavailable_dates_from([resolved]))

            self.supabase.table("availability") \
                .delete() \
                .eq("employee_id", employee_id) \
                .eq("date", day) \
                .execute()

            if resolved is None:
                return None

            result = self.supabase.table("availability") \
                .insert({"employee_id": employee_id, **resolved}) \
                .execute()
        return result.data[0] if result.data else None

    async def get_blocked_dates(self, employee_ids: List[str]) -> Dict[str, Dict[str, List[str]]]:
        """
        unavailableDates and holidayDates for each employee.

        Holidays are every day covered by an approved holiday request.
        """
        blocked = {e: {"unavailableDates": [], "holidayDates": []} for e in employee_ids}
        if not employee_ids:
            return blocked

        availability = self.supabase.table("availability") \
            .select("*") \
            .in_("employee_id", employee_ids) \
            .eq("type", "unavailable") \
            .execute()

        holidays = self.supabase.table("leave_requests") \
            .select("*") \
            .in_("employee_id", employee_ids) \
            .eq("kind", "holiday") \
            .eq("status", "Approved") \
            .execute()

        for employee_id in employee_ids:
            blocked[employee_id]["unavailableDates"] = unavailable_dates_from(
                row for row in availability.data or [] if row["employee_id"] == employee_id
            )
            blocked[employee_id]["holidayDates"] = holiday_dates_from(
                row for row in holidays.data or [] if row["employee_id"] == employee_id
            )

        return blocked

    async def check(self, employee_id: str, day: date) -> AvailabilityStatus:
        blocked = await self.get_blocked_dates([employee_id])
        return check_availability(
            day,
            blocked[employee_id]["unavailableDates"],
            blocked[employee_id]["holidayDates"]
        )

    async def ensure_assignable(self, employee_ids: List[str], day: date) -> None:
        """Raise ValidationError if any employee is on holiday or unavailable on `day`"""
        blocked = await self.get_blocked_dates(list(employee_ids))
        for employee_id in employee_ids:
            status = check_availability(
                day,
                blocked[employee_id]["unavailableDates"],
                blocked[employee_id]["holidayDates"]
            )
            if status is AvailabilityStatus.ON_HOLIDAY:
                raise ValidationError(f"Employee {employee_id} is on holiday on {day.isoformat()}")
            if status is AvailabilityStatus.UNAVAILABLE:
                raise ValidationError(f"Employee {employee_id} is unavailable on {day.isoformat()}")
