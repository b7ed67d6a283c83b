from fastapi import APIRouter, Depends, Query
from typing import Optional
from models.auth import Session
from models.workforce import ClockIn
from modules.rota.errors import ValidationError
from modules.rota.timeutils import parse_date
from services.attendance_service import AttendanceService
from services.auth_service import ensure_self_or_manager, get_current_session, require_manager

router = APIRouter(prefix="/api/attendance", tags=["attendance"])


@router.post("/clockin")
async def clock_in(
    body: ClockIn,
    session: Session = Depends(get_current_session)
):
    service = AttendanceService()
    record = await service.clock_in(session.staff_id, shift_id=body.shiftId)
    return {
        "success": True,
        "message": "Clocked in",
        "record": record
    }


@router.post("/clockout")
async def clock_out(session: Session = Depends(get_current_session)):
    service = AttendanceService()
    record = await service.clock_out(session.staff_id)
    return {
        "success": True,
        "message": "Clocked out",
        "record": record
    }


@router.get("/current-status/{user_id}")
async def current_status(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    """Whether the user has an open clock-in"""
    ensure_self_or_manager(session, user_id)
    service = AttendanceService()
    return await service.current_status(user_id)


@router.get("/history")
async def attendance_history(
    employeeId: Optional[str] = Query(default=None),
    start: Optional[str] = Query(default=None),
    end: Optional[str] = Query(default=None),
    session: Session = Depends(require_manager)
):
    """
    Attendance records, newest first.
    Managers only.
    """
    start_date = parse_date(start) if start else None
    end_date = parse_date(end) if end else None
    if (start and start_date is None) or (end and end_date is None):
        raise ValidationError("Invalid date format (use YYYY-MM-DD)")

    service = AttendanceService()
    return await service.records_for(employeeId, start_date, end_date)


@router.post("/check-missed")
async def check_missed_shifts(session: Session = Depends(require_manager)):
    """Flag ended shifts nobody clocked in for"""
    service = AttendanceService()
    results = await service.flag_missed_shifts()
    return {
        "success": True,
        **results
    }


@router.get("/today-stats")
async def today_stats(session: Session = Depends(require_manager)):
    """Employees present today out of all employees, plus today's scheduled head count"""
    service = AttendanceService()
    return await service.today_stats()
