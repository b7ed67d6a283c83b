from fastapi import APIRouter, Depends, HTTPException, status, Query
from models.auth import Session
from services.auth_service import get_current_session
from services.notifications_service import NotificationsService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def get_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, le=100),
    session: Session = Depends(get_current_session)
):
    """
    Get notifications for current user.

    Approval decisions, swap requests addressed to the user and missed shifts
    are all stored here as well as pushed in realtime.

    Optional filters:
    - unread_only: Only return unread notifications
    - limit: Max results (default 50, max 100)
    """
    service = NotificationsService()

    try:
        notifications = await service.get_notifications_for_user(
            staff_id=session.staff_id,
            unread_only=unread_only,
            limit=limit
        )

        unread_count = await service.get_unread_count(staff_id=session.staff_id)

        return {
            "success": True,
            "notifications": notifications,
            "count": len(notifications),
            "unread_count": unread_count
        }

    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch notifications: {str(e)}"
        )


@router.put("/read-all")
async def mark_all_notifications_read(
    session: Session = Depends(get_current_session)
):
    """Mark all notifications as read for current user"""
    service = NotificationsService()

    try:
        count = await service.mark_all_as_read(staff_id=session.staff_id)

        return {
            "success": True,
            "marked_count": count,
            "message": f"Marked {count} notifications as read"
        }

    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update notifications: {str(e)}"
        )


@router.put("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    session: Session = Depends(get_current_session)
):
    """Mark a notification as read"""
    service = NotificationsService()

    try:
        result = await service.mark_as_read(
            notification_id=notification_id,
            staff_id=session.staff_id
        )

        if not result:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )

        return {
            "success": True,
            "notification": result,
            "message": "Marked as read"
        }

    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update notification: {str(e)}"
        )
