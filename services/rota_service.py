import logging
from datetime import date, datetime
from typing import Optional, Dict, Any, List
from database.supabase_client import get_supabase
from models.auth import Role, Session
from modules.rota.conflicts import ensure_no_conflicts
from modules.rota.errors import ConflictError, NotFoundError, ValidationError
from modules.rota.locks import employee_locks
from modules.rota.shifts import ACTIVE_STATUSES, ShiftStatus, normalize_shift
from modules.rota.timeutils import parse_date
from services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)


class RotaService:
    """
    Shift storage with the scheduling invariants enforced on every write:
    nobody is assigned on a holiday or unavailable date, and no employee
    holds two overlapping active shifts.

    Writes hold the per-employee locks for the check-then-write sequence and
    every update is a compare-and-set on `version`.
    """

    def __init__(self):
        self.supabase = get_supabase()
        self.availability = AvailabilityService()

    async def get_shift(self, shift_id: str) -> Dict[str, Any]:
        result = self.supabase.table("shifts") \
            .select("*") \
            .eq("id", shift_id) \
            .limit(1) \
            .execute()
        if not result.data:
            raise NotFoundError("Shift not found")
        return result.data[0]

    async def list_shifts(
        self,
        session: Session,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[ShiftStatus] = None
    ) -> List[Dict[str, Any]]:
        """All shifts in a date range; employees only see published ones"""
        query = self.supabase.table("shifts").select("*")
        if start_date:
            query = query.gte("date", start_date.isoformat())
        if end_date:
            query = query.lte("date", end_date.isoformat())
        query = self._scope_status(query, session, status)

        result = query.order("date").order("start_time").execute()
        return result.data or []

    async def shifts_on_date(self, session: Session, day: date) -> List[Dict[str, Any]]:
        return await self.list_shifts(session, start_date=day, end_date=day)

    async def shifts_for_employee(
        self,
        session: Session,
        employee_id: str,
        day: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        query = self.supabase.table("shifts") \
            .select("*") \
            .contains("employees", [employee_id])
        if day:
            query = query.eq("date", day.isoformat())
        query = self._scope_status(query, session, None)

        result = query.order("date").order("start_time").execute()
        return result.data or []

    def _scope_status(self, query, session: Session, status: Optional[ShiftStatus]):
        if session.role is Role.MANAGER:
            return query.eq("status", status.value) if status else query
        elif session.role is Role.EMPLOYEE:
            return query.eq("status", ShiftStatus.PUBLISHED.value)
        raise AssertionError(f"Unhandled role: {session.role}")

    async def active_shifts_for(self, employee_ids: List[str], day: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("shifts") \
            .select("*") \
            .eq("date", day) \
            .in_("status", list(ACTIVE_STATUSES)) \
            .ov("employees", employee_ids) \
            .execute()
        return result.data or []

    async def create_shift(self, shift_data: Dict[str, Any], created_by: str) -> Dict[str, Any]:
        """Create a draft shift after availability and overlap checks"""
        fields = normalize_shift(
            shift_data.get("date"),
            shift_data.get("startTime"),
            shift_data.get("endTime"),
            shift_data.get("employees"),
            shift_data.get("tasks")
        )

        async with employee_locks.hold(fields["employees"]):
            await self.availability.ensure_assignable(fields["employees"], parse_date(fields["date"]))
            existing = await self.active_shifts_for(fields["employees"], fields["date"])
            ensure_no_conflicts(fields, existing)

            now = datetime.utcnow().isoformat()
            payload = {
                **fields,
                "status": ShiftStatus.DRAFT.value,
                "version": 1,
                "created_by": created_by,
                "created_at": now,
                "updated_at": now
            }

            try:
                result = self.supabase.table("shifts").insert(payload).execute()
            except Exception as e:
                logger.error(f"Create shift error: {e}")
                raise e

        if not result.data:
            raise Exception("Insert returned no data")

        shift = result.data[0]
        logger.info(f"Shift {shift['id']} created on {shift['date']} for {len(shift['employees'])} employee(s)")
        return shift

    async def update_shift(self, shift_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Modify a shift's date, times, employees or tasks.

        `version`, when sent, must match the stored version. Availability is
        re-checked for newly added employees, or for everyone when the date
        moves.
        """
        current = await self.get_shift(shift_id)
        expected_version = update_data.get("version")
        if expected_version is not None and expected_version != current["version"]:
            raise ConflictError("This shift was changed by someone else. Reload and try again.")
        if current["status"] == ShiftStatus.CANCELLED.value:
            raise ValidationError("Cancelled shifts cannot be modified")

        fields = normalize_shift(
            update_data.get("date") or current["date"],
            update_data.get("startTime") or current["start_time"][:5],
            update_data.get("endTime") or current["end_time"][:5],
            update_data.get("employees") if update_data.get("employees") is not None else current["employees"],
            update_data.get("tasks") if update_data.get("tasks") is not None else current["tasks"]
        )

        if fields["date"] != str(current["date"])[:10]:
            to_check = fields["employees"]
        else:
            to_check = [e for e in fields["employees"] if e not in current["employees"]]

        async with employee_locks.hold(set(fields["employees"]) | set(current["employees"])):
            if to_check:
                await self.availability.ensure_assignable(to_check, parse_date(fields["date"]))
            existing = await self.active_shifts_for(fields["employees"], fields["date"])
            ensure_no_conflicts(fields, existing, ignore_shift_id=shift_id)

            updated = await self._compare_and_set(current, fields)

        logger.info(f"Shift {shift_id} updated to version {updated['version']}")
        return updated

    async def _compare_and_set(self, current: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            **changes,
            "version": current["version"] + 1,
            "updated_at": datetime.utcnow().isoformat()
        }
        result = self.supabase.table("shifts") \
            .update(payload) \
            .eq("id", current["id"]) \
            .eq("version", current["version"]) \
            .execute()

        if not result.data:
            raise ConflictError("This shift was changed by someone else. Reload and try again.")
        return result.data[0]

    async def publish_shift(self, shift_id: str) -> Dict[str, Any]:
        current = await self.get_shift(shift_id)
        if current["status"] == ShiftStatus.PUBLISHED.value:
            return current
        if current["status"] == ShiftStatus.CANCELLED.value:
            raise ValidationError("Cancelled shifts cannot be published")

        updated = await self._compare_and_set(current, {
            "status": ShiftStatus.PUBLISHED.value,
            "published_at": datetime.utcnow().isoformat()
        })
        logger.info(f"Shift {shift_id} published")
        return updated

    async def cancel_shift(self, shift_id: str) -> Dict[str, Any]:
        current = await self.get_shift(shift_id)
        if current["status"] == ShiftStatus.CANCELLED.value:
            return current

        updated = await self._compare_and_set(current, {"status": ShiftStatus.CANCELLED.value})
        logger.info(f"Shift {shift_id} cancelled")
        return updated

    async def delete_shift(self, shift_id: str) -> None:
        await self.get_shift(shift_id)
        self.supabase.table("shifts") \
            .delete() \
            .eq("id", shift_id) \
            .execute()
        logger.info(f"Shift {shift_id} deleted")
