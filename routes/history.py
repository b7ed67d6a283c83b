from fastapi import APIRouter, Depends, Query
from models.auth import Session
from services.auth_service import get_current_session
from services.history_service import HistoryService

router = APIRouter(prefix="/api", tags=["history"])


@router.get("/history")
async def get_history(
    days: int = Query(default=30, ge=1, le=365),
    session: Session = Depends(get_current_session)
):
    """
    Work shifts and request activity for the last `days` days, newest first.

    Items are { id, type, date, title, subtitle, status, employeeId };
    type "Attendance" marks worked or missed shifts.
    """
    service = HistoryService()
    return await service.history(session, days)
