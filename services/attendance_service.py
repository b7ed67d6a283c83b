import logging
from datetime import date, datetime, timedelta
from typing import Optional, Dict, Any, List
from database.supabase_client import get_supabase
from models.auth import Role
from modules.rota.attendance import attended_employees
from modules.rota.errors import ConflictError, PermissionDeniedError
from modules.rota.events import EventType, MANAGER_ROOM, user_room
from modules.rota.shifts import ShiftStatus
from modules.rota.timeutils import shift_end
from services.notifications_service import NotificationsService
from services.rota_service import RotaService
from services.staff_service import get_staff_list

logger = logging.getLogger(__name__)


class AttendanceService:
    """
    Clock-in/clock-out records and the missed-shift sweep.

    Timestamps are local wall-clock time, the same clock shift start and
    end times are written in.
    """

    # How far back the missed-shift sweep looks for ended shifts
    MISSED_LOOKBACK_DAYS = 7

    def __init__(self):
        self.supabase = get_supabase()
        self.notifications = NotificationsService()

    async def _open_record(self, employee_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("attendance") \
            .select("*") \
            .eq("employee_id", employee_id) \
            .eq("status", "ClockedIn") \
            .limit(1) \
            .execute()
        return result.data[0] if result.data else None

    async def clock_in(
        self,
        employee_id: str,
        shift_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        if await self._open_record(employee_id):
            raise ConflictError("You are already clocked in")

        if shift_id:
            shift = await RotaService().get_shift(shift_id)
            if employee_id not in shift["employees"]:
                raise PermissionDeniedError("You are not assigned to this shift")

        now = now or datetime.now()
        payload = {
            "employee_id": employee_id,
            "shift_id": shift_id,
            "date": now.date().isoformat(),
            "clock_in": now.isoformat(),
            "clock_out": None,
            "status": "ClockedIn"
        }
        result = self.supabase.table("attendance").insert(payload).execute()
        logger.info(f"{employee_id} clocked in")
        return result.data[0]

    async def clock_out(self, employee_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        record = await self._open_record(employee_id)
        if not record:
            raise ConflictError("You are not clocked in")

        now = now or datetime.now()
        result = self.supabase.table("attendance") \
            .update({"clock_out": now.isoformat(), "status": "Completed"}) \
            .eq("id", record["id"]) \
            .eq("status", "ClockedIn") \
            .execute()
        if not result.data:
            raise ConflictError("You are not clocked in")

        logger.info(f"{employee_id} clocked out")
        return result.data[0]

    async def current_status(self, employee_id: str) -> Dict[str, Any]:
        record = await self._open_record(employee_id)
        return {
            "isClockedIn": record is not None,
            "record": record
        }

    async def records_for(
        self,
        employee_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        query = self.supabase.table("attendance").select("*")
        if employee_id:
            query = query.eq("employee_id", employee_id)
        if start_date:
            query = query.gte("date", start_date.isoformat())
        if end_date:
            query = query.lte("date", end_date.isoformat())
        result = query.order("date", desc=True).execute()
        return result.data or []

    async def today_stats(self, today: Optional[date] = None) -> Dict[str, int]:
        """Head counts for the manager dashboard"""
        today = today or date.today()
        employees = await get_staff_list(Role.EMPLOYEE)
        employee_ids = {s["id"] for s in employees}

        records = await self.records_for(start_date=today, end_date=today)
        present = {
            r["employee_id"] for r in records
            if r["employee_id"] in employee_ids and r.get("clock_in")
        }
        clocked_in = {
            r["employee_id"] for r in records
            if r["employee_id"] in employee_ids and r["status"] == "ClockedIn"
        }

        shifts = self.supabase.table("shifts") \
            .select("*") \
            .eq("date", today.isoformat()) \
            .eq("status", ShiftStatus.PUBLISHED.value) \
            .execute()
        scheduled = {e for s in shifts.data or [] for e in s["employees"]}

        return {
            "present": len(present),
            "total": len(employee_ids),
            "clockedIn": len(clocked_in),
            "scheduled": len(scheduled),
            "shifts": len(shifts.data or [])
        }

    async def _records_covering(self, shift: Dict[str, Any]) -> List[Dict[str, Any]]:
        by_shift = self.supabase.table("attendance") \
            .select("*") \
            .eq("shift_id", shift["id"]) \
            .execute()
        by_day = self.supabase.table("attendance") \
            .select("*") \
            .in_("employee_id", shift["employees"]) \
            .eq("date", str(shift["date"])[:10]) \
            .execute()
        return (by_shift.data or []) + (by_day.data or [])

    async def flag_missed_shifts(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Record a Missed entry for every published shift that has ended without
        its employee clocking in, and tell that employee in realtime.

        A clock-in counts for a shift when it names the shift or falls inside
        the shift's window, so clock-ins sent without a shift id still count.
        """
        now = now or datetime.now()
        since = (now - timedelta(days=self.MISSED_LOOKBACK_DAYS)).date()

        shifts = self.supabase.table("shifts") \
            .select("*") \
            .eq("status", ShiftStatus.PUBLISHED.value) \
            .gte("date", since.isoformat()) \
            .lte("date", now.date().isoformat()) \
            .execute()

        results = {"checked": 0, "missed": 0, "details": []}

        for shift in shifts.data or []:
            if shift_end(shift) > now:
                continue
            results["checked"] += 1

            seen = attended_employees(await self._records_covering(shift), shift)

            for employee_id in shift["employees"]:
                if str(employee_id) in seen:
                    continue
                record = self.supabase.table("attendance").insert({
                    "employee_id": employee_id,
                    "shift_id": shift["id"],
                    "date": str(shift["date"])[:10],
                    "clock_in": None,
                    "clock_out": None,
                    "status": "Missed"
                }).execute().data[0]

                results["missed"] += 1
                results["details"].append(record)
                logger.info(f"Shift {shift['id']} missed by {employee_id}")

                await self.notifications.notify(
                    EventType.SHIFT_MISSED,
                    {**record, "start_time": shift["start_time"], "end_time": shift["end_time"]},
                    rooms=[user_room(employee_id), MANAGER_ROOM],
                    recipient_id=employee_id,
                    title="Missed shift",
                    message=f"You missed your shift on {record['date']}."
                )

        logger.info(f"Missed-shift sweep complete: {results['missed']} missed of {results['checked']} ended shifts")
        return results
