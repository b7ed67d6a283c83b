from fastapi import APIRouter, Depends
from models.auth import Session
from services.auth_service import require_manager
from services.reports_service import ReportsService

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/monthly/{year}/{month}")
async def monthly_report(
    year: int,
    month: int,
    session: Session = Depends(require_manager)
):
    """
    Hours and labour cost for one month with per-employee details.
    Managers only.
    """
    service = ReportsService()
    return await service.monthly(year, month)


@router.get("/yearly/{year}")
async def yearly_report(
    year: int,
    session: Session = Depends(require_manager)
):
    """Hours and labour cost for a year, broken down by month"""
    service = ReportsService()
    return await service.yearly(year)
