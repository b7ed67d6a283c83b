import logging
from datetime import date, datetime
from typing import Optional, Dict, Any, List
from database.supabase_client import get_supabase
from config.settings import SICK_CALL_MIN_NOTICE_HOURS
from models.auth import Session
from modules.rota.approvals import (
    ApprovalAction,
    RequestStatus,
    RequestType,
    next_status,
)
from modules.rota.conflicts import ensure_no_conflicts
from modules.rota.errors import ConflictError, NotFoundError, ValidationError
from modules.rota.events import MANAGER_ROOM, event_for_request_type, user_room
from modules.rota.leave_rules import (
    HOLIDAY_CATEGORIES,
    reassigned_tasks,
    resolve_swap_target,
    swapped_employees,
    validate_holiday_dates,
    validate_sick_call,
)
from modules.rota.locks import employee_locks
from modules.rota.shifts import ACTIVE_STATUSES
from modules.rota.timeutils import iter_dates, parse_date
from services.availability_service import AvailabilityService
from services.notifications_service import NotificationsService
from services.rota_service import RotaService

logger = logging.getLogger(__name__)

OPEN_STATUSES = [RequestStatus.PENDING.value, RequestStatus.APPROVED.value]

REQUEST_LABELS = {
    RequestType.SHIFT_SWAP: "Shift swap",
    RequestType.SICK_LEAVE: "Sick leave",
    RequestType.HOLIDAY: "Holiday",
}


class ApprovalsService:
    """
    Holiday, sick-leave and shift-swap requests and their manager decisions.

    Every request starts Pending and moves once, to Approved or Denied.
    Decisions are compare-and-set on the Pending status, so a second
    decision on the same request is refused.
    """

    def __init__(self):
        self.supabase = get_supabase()
        self.rota = RotaService()
        self.availability = AvailabilityService()
        self.notifications = NotificationsService()

    # ===== EMPLOYEE SUBMISSIONS =====

    async def book_holiday(
        self,
        session: Session,
        request_data: Dict[str, Any],
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """Submit a holiday request for the caller"""
        today = today or date.today()
        start, end = validate_holiday_dates(
            request_data.get("startDate") or "",
            request_data.get("endDate") or "",
            today
        )

        category = request_data.get("type") or "Paid"
        if category not in HOLIDAY_CATEGORIES:
            raise ValidationError("Holiday type must be Paid or Unpaid")

        overlapping = self.supabase.table("leave_requests") \
            .select("*") \
            .eq("employee_id", session.staff_id) \
            .eq("kind", "holiday") \
            .in_("status", OPEN_STATUSES) \
            .lte("start_date", end.isoformat()) \
            .gte("end_date", start.isoformat()) \
            .execute()
        if overlapping.data:
            raise ConflictError("You already have a holiday request covering these dates")

        payload = {
            "employee_id": session.staff_id,
            "employee_name": session.full_name,
            "kind": "holiday",
            "category": category,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "reason": request_data.get("reason") or "",
            "status": RequestStatus.PENDING.value,
            "created_at": datetime.utcnow().isoformat()
        }
        request = await self._insert("leave_requests", payload)
        logger.info(f"Holiday {request['id']} requested by {session.staff_id}: {start} to {end}")

        await self.notifications.notify(
            event_for_request_type(RequestType.HOLIDAY.value),
            request,
            rooms=[MANAGER_ROOM]
        )
        return request

    async def holiday_status(self, employee_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("leave_requests") \
            .select("*") \
            .eq("employee_id", employee_id) \
            .eq("kind", "holiday") \
            .order("created_at", desc=True) \
            .execute()
        return result.data or []

    async def call_in_sick(
        self,
        session: Session,
        shift_id: str,
        reason: str,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Report sick for one of the caller's shifts, at least the minimum notice ahead"""
        shift = await self.rota.get_shift(shift_id)
        validate_sick_call(shift, session.staff_id, now or datetime.now(), SICK_CALL_MIN_NOTICE_HOURS)

        existing = self.supabase.table("leave_requests") \
            .select("*") \
            .eq("employee_id", session.staff_id) \
            .eq("kind", "sick") \
            .eq("shift_id", shift["id"]) \
            .in_("status", OPEN_STATUSES) \
            .execute()
        if existing.data:
            raise ConflictError("You have already called in sick for this shift")

        day = str(shift["date"])[:10]
        payload = {
            "employee_id": session.staff_id,
            "employee_name": session.full_name,
            "kind": "sick",
            "shift_id": shift["id"],
            "start_date": day,
            "end_date": day,
            "reason": reason or "",
            "status": RequestStatus.PENDING.value,
            "created_at": datetime.utcnow().isoformat()
        }
        request = await self._insert("leave_requests", payload)
        logger.info(f"Sick call {request['id']} by {session.staff_id} for shift {shift['id']}")

        await self.notifications.notify(
            event_for_request_type(RequestType.SICK_LEAVE.value),
            request,
            rooms=[MANAGER_ROOM]
        )
        return request

    async def request_swap(
        self,
        session: Session,
        swap_data: Dict[str, Any],
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Propose exchanging one of the caller's shifts with another employee's"""
        current_shift = await self.rota.get_shift(swap_data["currentShiftId"])
        target_shift = await self.rota.get_shift(swap_data["targetShiftId"])

        target_employee_id = resolve_swap_target(
            current_shift,
            target_shift,
            session.staff_id,
            swap_data.get("targetEmployeeId"),
            now or datetime.now()
        )

        existing = self.supabase.table("swap_requests") \
            .select("*") \
            .eq("requester_id", session.staff_id) \
            .eq("current_shift_id", current_shift["id"]) \
            .eq("target_shift_id", target_shift["id"]) \
            .eq("status", RequestStatus.PENDING.value) \
            .execute()
        if existing.data:
            raise ConflictError("A swap request for these shifts is already pending")

        payload = {
            "requester_id": session.staff_id,
            "requester_name": session.full_name,
            "target_employee_id": target_employee_id,
            "current_shift_id": current_shift["id"],
            "target_shift_id": target_shift["id"],
            "reason": swap_data.get("reason") or "",
            "status": RequestStatus.PENDING.value,
            "created_at": datetime.utcnow().isoformat()
        }
        request = await self._insert("swap_requests", payload)
        logger.info(f"Swap {request['id']} requested by {session.staff_id} with {target_employee_id}")

        await self.notifications.notify(
            event_for_request_type(RequestType.SHIFT_SWAP.value),
            request,
            rooms=[MANAGER_ROOM, user_room(target_employee_id)]
        )
        return request

    # ===== MANAGER DECISIONS =====

    async def get_all_requests(self) -> Dict[str, List[Dict[str, Any]]]:
        swaps = self.supabase.table("swap_requests") \
            .select("*") \
            .order("created_at", desc=True) \
            .execute()
        leaves = self.supabase.table("leave_requests") \
            .select("*") \
            .order("created_at", desc=True) \
            .execute()

        leave_rows = leaves.data or []
        return {
            "shiftSwaps": swaps.data or [],
            "sickLeaves": [r for r in leave_rows if r.get("kind") == "sick"],
            "holidays": [r for r in leave_rows if r.get("kind") == "holiday"],
        }

    async def decide(
        self,
        request_type: RequestType,
        request_id: str,
        action: ApprovalAction,
        manager: Session
    ) -> Dict[str, Any]:
        """Approve or deny a pending request"""
        table = "swap_requests" if request_type is RequestType.SHIFT_SWAP else "leave_requests"
        request = await self._get_request(table, request_type, request_id)
        status = next_status(request["status"], action)

        if request_type is RequestType.SHIFT_SWAP and status is RequestStatus.APPROVED:
            decided = await self._approve_swap(request, manager)
        elif request_type is RequestType.HOLIDAY and status is RequestStatus.APPROVED:
            decided = await self._approve_holiday(table, request, manager)
        else:
            decided = await self._set_status(table, request, status, manager)

        logger.info(
            f"{REQUEST_LABELS[request_type]} {request_id} {status.value.lower()} by {manager.staff_id}"
        )
        await self._announce_decision(request_type, decided)
        return decided

    async def _get_request(self, table: str, request_type: RequestType, request_id: str) -> Dict[str, Any]:
        query = self.supabase.table(table).select("*").eq("id", request_id)
        if request_type is RequestType.SICK_LEAVE:
            query = query.eq("kind", "sick")
        elif request_type is RequestType.HOLIDAY:
            query = query.eq("kind", "holiday")
        result = query.limit(1).execute()
        if not result.data:
            raise NotFoundError(f"{REQUEST_LABELS[request_type]} request not found")
        return result.data[0]

    async def _set_status(
        self,
        table: str,
        request: Dict[str, Any],
        status: RequestStatus,
        manager: Session
    ) -> Dict[str, Any]:
        result = self.supabase.table(table) \
            .update({
                "status": status.value,
                "decided_by": manager.staff_id,
                "decided_at": datetime.utcnow().isoformat()
            }) \
            .eq("id", request["id"]) \
            .eq("status", RequestStatus.PENDING.value) \
            .execute()

        if not result.data:
            raise ConflictError("Request has already been decided")
        return result.data[0]

    async def _approve_holiday(
        self,
        table: str,
        request: Dict[str, Any],
        manager: Session
    ) -> Dict[str, Any]:
        """Approve only while the employee holds no shift inside the holiday"""
        employee_id = request["employee_id"]
        days = [
            d.isoformat()
            for d in iter_dates(parse_date(request["start_date"]), parse_date(request["end_date"]))
        ]

        async with employee_locks.hold([employee_id]):
            await self.availability.ensure_not_rostered(employee_id, days)
            return await self._set_status(table, request, RequestStatus.APPROVED, manager)

    async def _approve_swap(self, request: Dict[str, Any], manager: Session) -> Dict[str, Any]:
        """
        Exchange the two assignments and approve the request in one database call.

        The database function applies both shift updates and the status change
        together, and only if both shift versions and the Pending status are
        unchanged since they were read here.
        """
        requester_id = request["requester_id"]
        target_employee_id = request["target_employee_id"]

        async with employee_locks.hold([requester_id, target_employee_id]):
            current_shift = await self.rota.get_shift(request["current_shift_id"])
            target_shift = await self.rota.get_shift(request["target_shift_id"])

            if requester_id not in current_shift["employees"] or \
                    target_employee_id not in target_shift["employees"]:
                raise ConflictError("Shift assignments changed since the swap was requested")
            for shift in (current_shift, target_shift):
                if shift["status"] not in ACTIVE_STATUSES:
                    raise ConflictError("One of the shifts has been cancelled")

            current_after, target_after = swapped_employees(
                current_shift, target_shift, requester_id, target_employee_id
            )
            current_tasks = reassigned_tasks(current_shift["tasks"], requester_id, target_employee_id)
            target_tasks = reassigned_tasks(target_shift["tasks"], target_employee_id, requester_id)

            await self.availability.ensure_assignable([requester_id], parse_date(target_shift["date"]))
            await self.availability.ensure_assignable([target_employee_id], parse_date(current_shift["date"]))

            swap_ids = {str(current_shift["id"]), str(target_shift["id"])}
            for employee_id, shift in ((requester_id, target_shift), (target_employee_id, current_shift)):
                others = [
                    s for s in await self.rota.active_shifts_for([employee_id], str(shift["date"])[:10])
                    if str(s["id"]) not in swap_ids
                ]
                ensure_no_conflicts({**shift, "employees": [employee_id]}, others)

            try:
                result = self.supabase.rpc("approve_shift_swap", {
                    "p_request_id": request["id"],
                    "p_decided_by": manager.staff_id,
                    "p_current_shift_id": current_shift["id"],
                    "p_current_version": current_shift["version"],
                    "p_current_employees": current_after,
                    "p_current_tasks": current_tasks,
                    "p_target_shift_id": target_shift["id"],
                    "p_target_version": target_shift["version"],
                    "p_target_employees": target_after,
                    "p_target_tasks": target_tasks,
                }).execute()
            except Exception as e:
                logger.error(f"Swap approval failed for {request['id']}: {e}")
                raise ConflictError("Shifts or request changed during approval. Reload and try again.")

        if not result.data:
            raise ConflictError("Shifts or request changed during approval. Reload and try again.")
        return result.data[0] if isinstance(result.data, list) else result.data

    async def _announce_decision(self, request_type: RequestType, request: Dict[str, Any]) -> None:
        event_type = event_for_request_type(request_type.value)
        label = REQUEST_LABELS[request_type]
        status = request["status"]

        if request_type is RequestType.SHIFT_SWAP:
            recipients = [request["requester_id"], request["target_employee_id"]]
        else:
            recipients = [request["employee_id"]]

        rooms = [MANAGER_ROOM] + [user_room(r) for r in recipients]
        await self.notifications.notify(event_type, request, rooms=rooms)

        # decision is committed by now; storing is best-effort
        for recipient_id in recipients:
            await self.notifications.store_quietly({
                "recipient_id": recipient_id,
                "title": f"{label} request {status.lower()}",
                "message": f"Your {label.lower()} request has been {status.lower()}.",
                "type": event_type.value,
                "related_id": str(request["id"])
            })

    async def _insert(self, table: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table(table).insert(payload).execute()
        except Exception as e:
            logger.error(f"Insert into {table} error: {e}")
            raise e
        if not result.data:
            raise Exception("Insert returned no data")
        return result.data[0]
