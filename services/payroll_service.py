import logging
from datetime import date, datetime
from typing import Optional, Dict, Any, List
from database.supabase_client import get_supabase
from modules.rota.errors import ValidationError
from modules.rota.payroll import compute_pay, hours_in_period
from modules.rota.timeutils import parse_date, week_bounds
from services.attendance_service import AttendanceService
from services.staff_service import get_staff_member

logger = logging.getLogger(__name__)


class PayrollService:
    """Payroll records: hours from attendance within a period, total = hours x rate"""

    def __init__(self):
        self.supabase = get_supabase()
        self.attendance = AttendanceService()

    async def _period(self, start_value: str, end_value: str):
        start = parse_date(start_value or "")
        end = parse_date(end_value or "")
        if start is None or end is None:
            raise ValidationError("Invalid period dates (use YYYY-MM-DD)")
        if start > end:
            raise ValidationError("Period end cannot be before period start")
        return start, end

    async def create_payroll(
        self,
        employee_id: str,
        start_value: str,
        end_value: str,
        rate: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Compute and store one employee's pay for a period.

        `rate` falls back to the employee's hourly rate.
        """
        start, end = await self._period(start_value, end_value)
        employee = await get_staff_member(employee_id)

        if rate is None:
            rate = float(employee.get("hourly_rate") or 0)
        if rate < 0:
            raise ValidationError("Rate cannot be negative")

        records = await self.attendance.records_for(employee_id, start, end)
        hours = hours_in_period(records, start, end)

        payload = {
            "employee_id": employee_id,
            "period_start": start.isoformat(),
            "period_end": end.isoformat(),
            "rate": rate,
            "hours": hours,
            "total": compute_pay(hours, rate),
            "created_at": datetime.utcnow().isoformat()
        }

        try:
            result = self.supabase.table("payroll_records").insert(payload).execute()
        except Exception as e:
            logger.error(f"Create payroll error: {e}")
            raise e

        if not result.data:
            raise Exception("Insert returned no data")

        logger.info(f"Payroll for {employee_id} {start}..{end}: {hours}h at {rate} = {payload['total']}")
        return result.data[0]

    async def list_payroll(self, employee_id: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.supabase.table("payroll_records").select("*")
        if employee_id:
            query = query.eq("employee_id", employee_id)
        result = query.order("period_start", desc=True).execute()
        return result.data or []

    async def weekly_summary(self, employee_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        """Hours and pay so far this week (Monday to Sunday)"""
        employee = await get_staff_member(employee_id)
        monday, sunday = week_bounds(today or date.today())

        records = await self.attendance.records_for(employee_id, monday, sunday)
        hours = hours_in_period(records, monday, sunday)
        rate = float(employee.get("hourly_rate") or 0)

        return {
            "employeeId": employee_id,
            "weekStart": monday.isoformat(),
            "weekEnd": sunday.isoformat(),
            "hours": hours,
            "rate": rate,
            "total": compute_pay(hours, rate)
        }
