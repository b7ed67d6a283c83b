import logging
from datetime import date
from typing import Any, Dict
from modules.rota.reports import (
    month_bounds,
    monthly_report,
    previous_month,
    validate_period,
    yearly_report,
)
from services.attendance_service import AttendanceService
from services.staff_service import get_staff_list

logger = logging.getLogger(__name__)


class ReportsService:
    """Labour hours and cost summaries built from attendance"""

    def __init__(self):
        self.attendance = AttendanceService()

    async def monthly(self, year: int, month: int) -> Dict[str, Any]:
        validate_period(year, month)
        start, _ = month_bounds(*previous_month(year, month))
        _, end = month_bounds(year, month)

        records = await self.attendance.records_for(start_date=start, end_date=end)
        staff = await get_staff_list()
        logger.info(f"Monthly report {year}-{month:02d} from {len(records)} attendance records")
        return monthly_report(records, staff, year, month)

    async def yearly(self, year: int) -> Dict[str, Any]:
        validate_period(year)
        records = await self.attendance.records_for(
            start_date=date(year - 1, 1, 1),
            end_date=date(year, 12, 31)
        )
        staff = await get_staff_list()
        logger.info(f"Yearly report {year} from {len(records)} attendance records")
        return yearly_report(records, staff, year)
