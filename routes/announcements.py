from fastapi import APIRouter, Depends, Header, HTTPException, status, Query
from typing import Optional
from models.auth import Session
from models.workforce import AnnouncementCreate
from modules.rota.errors import RotaError
from services.announcements_service import AnnouncementsService
from services.auth_service import get_current_session, require_manager
from services.idempotency_service import idempotent

router = APIRouter(prefix="/api/announcements", tags=["announcements"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_announcement(
    announcement: AnnouncementCreate,
    idempotency_key: Optional[str] = Header(default=None),
    session: Session = Depends(require_manager)
):
    """
    Post an announcement.
    Managers only.

    audience: all, employees or managers
    """
    service = AnnouncementsService()

    try:
        result = await idempotent(
            idempotency_key,
            session.staff_id,
            "POST /announcements",
            lambda: service.create_announcement(announcement.model_dump(), created_by=session.staff_id)
        )
        return {
            "success": True,
            "announcement": result
        }
    except (HTTPException, RotaError):
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to post announcement: {str(e)}"
        )


@router.get("")
async def get_announcements(
    limit: int = Query(default=50, le=100),
    session: Session = Depends(get_current_session)
):
    """Announcements visible to the caller, newest first"""
    service = AnnouncementsService()
    return await service.list_announcements(session, limit=limit)
