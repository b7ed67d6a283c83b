import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from database.supabase_client import get_supabase
from models.auth import Role, Session
from modules.rota.history import build_history
from services.attendance_service import AttendanceService

logger = logging.getLogger(__name__)


class HistoryService:
    """
    Recent activity: attendance plus holiday, sick and swap requests.

    Employees get their own activity; managers get everyone's.
    """

    def __init__(self):
        self.supabase = get_supabase()
        self.attendance = AttendanceService()

    async def history(self, session: Session, days: int, today: Optional[date] = None) -> List[Dict[str, Any]]:
        today = today or date.today()
        since = today - timedelta(days=days - 1)

        if session.role is Role.MANAGER:
            employee_id = None
        elif session.role is Role.EMPLOYEE:
            employee_id = session.staff_id
        else:
            raise AssertionError(f"Unhandled role: {session.role}")

        attendance = await self.attendance.records_for(employee_id, since, today)

        try:
            leaves = self.supabase.table("leave_requests") \
                .select("*") \
                .gte("created_at", since.isoformat())
            if employee_id:
                leaves = leaves.eq("employee_id", employee_id)
            leave_rows = leaves.execute().data or []

            swap_rows = self.supabase.table("swap_requests") \
                .select("*") \
                .gte("created_at", since.isoformat()) \
                .execute().data or []
        except Exception as e:
            logger.error(f"Error fetching history since {since}: {str(e)}")
            raise

        if employee_id:
            swap_rows = [
                r for r in swap_rows
                if employee_id in (r["requester_id"], r["target_employee_id"])
            ]

        return build_history(attendance, leave_rows, swap_rows)
