from fastapi import APIRouter, Depends, Query
from typing import Optional
from models.auth import Session
from models.workforce import PayrollCreate
from services.auth_service import ensure_self_or_manager, get_current_session, require_manager
from services.payroll_service import PayrollService

router = APIRouter(prefix="/api", tags=["payroll"])


@router.post("/payroll")
async def create_payroll(
    payroll: PayrollCreate,
    session: Session = Depends(require_manager)
):
    """
    Compute pay for one employee over a period.
    Managers only.

    Hours come from completed attendance records in the period.
    """
    service = PayrollService()
    record = await service.create_payroll(
        payroll.employeeId,
        payroll.start,
        payroll.end,
        rate=payroll.rate
    )
    return {
        "success": True,
        "payroll": record
    }


@router.get("/payroll")
async def list_payroll(
    employeeId: Optional[str] = Query(default=None),
    session: Session = Depends(get_current_session)
):
    """Payroll records; employees only ever see their own"""
    if not session.is_manager:
        employeeId = session.staff_id
    service = PayrollService()
    return await service.list_payroll(employeeId)


@router.get("/payrolls/weekly-summary/{user_id}")
async def weekly_summary(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    ensure_self_or_manager(session, user_id)
    service = PayrollService()
    return await service.weekly_summary(user_id)
