import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Iterable
from database.supabase_client import get_supabase
from modules.rota.events import EventType
from services.realtime_service import get_notifier

logger = logging.getLogger(__name__)

class NotificationsService:
    def __init__(self):
        self.supabase = get_supabase()
        self.notifier = get_notifier()

    async def create_notification(
        self,
        notification_data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Persist a notification for one recipient"""
        try:
            payload = {
                "recipient_id": notification_data["recipient_id"],
                "title": notification_data["title"],
                "message": notification_data["message"],
                "type": notification_data["type"],
                "related_id": notification_data.get("related_id"),
                "is_read": False,
                "created_at": datetime.utcnow().isoformat()
            }

            result = self.supabase.table("notifications").insert(payload).execute()

            if result.data and len(result.data) > 0:
                return result.data[0]
            else:
                raise Exception("Insert returned no data")

        except Exception as e:
            logger.error(f"Create notification error: {e}")
            raise e

    async def store_quietly(self, notification_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """create_notification that logs instead of raising"""
        try:
            return await self.create_notification(notification_data)
        except Exception as e:
            logger.error(
                f"Notification for {notification_data.get('recipient_id')} not stored: {e}"
            )
            return None

    async def notify(
        self,
        event_type: EventType,
        data: Dict[str, Any],
        rooms: Iterable[str],
        recipient_id: Optional[str] = None,
        title: Optional[str] = None,
        message: Optional[str] = None
    ) -> None:
        """
        Persist (when a recipient is given) and push a realtime event.

        Both steps are best-effort. A failure is logged and never fails the
        caller's write, which has already been committed.
        """
        if recipient_id and title:
            await self.store_quietly({
                "recipient_id": recipient_id,
                "title": title,
                "message": message or title,
                "type": event_type.value,
                "related_id": str(data.get("id")) if data.get("id") is not None else None
            })

        try:
            await self.notifier.publish(event_type, data, rooms)
        except Exception as e:
            logger.error(f"Realtime publish error for {event_type.value}: {e}")

    async def get_notifications_for_user(
        self,
        staff_id: str,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Dict[str, Any]]:
        """Get notifications addressed to a user, newest first"""
        try:
            query = self.supabase.table("notifications") \
                .select("*") \
                .eq("recipient_id", staff_id)

            if unread_only:
                query = query.eq("is_read", False)

            result = query \
                .order("created_at", desc=True) \
                .limit(limit) \
                .execute()

            return result.data or []

        except Exception as e:
            logger.error(f"Get notifications error: {e}")
            raise e

    async def mark_as_read(
        self,
        notification_id: str,
        staff_id: str
    ) -> Optional[Dict[str, Any]]:
        """Mark a notification as read"""
        try:
            result = self.supabase.table("notifications") \
                .update({"is_read": True}) \
                .eq("id", notification_id) \
                .eq("recipient_id", staff_id) \
                .execute()

            if result.data and len(result.data) > 0:
                return result.data[0]
            return None

        except Exception as e:
            logger.error(f"Mark as read error: {e}")
            raise e

    async def mark_all_as_read(
        self,
        staff_id: str
    ) -> int:
        """Mark all notifications as read for a user"""
        try:
            result = self.supabase.table("notifications") \
                .update({"is_read": True}) \
                .eq("recipient_id", staff_id) \
                .eq("is_read", False) \
                .execute()

            return len(result.data) if result.data else 0

        except Exception as e:
            logger.error(f"Mark all as read error: {e}")
            raise e

    async def get_unread_count(
        self,
        staff_id: str
    ) -> int:
        """Get count of unread notifications"""
        try:
            result = self.supabase.table("notifications") \
                .select("id") \
                .eq("recipient_id", staff_id) \
                .eq("is_read", False) \
                .execute()

            return len(result.data or [])

        except Exception as e:
            logger.error(f"Get unread count error: {e}")
            return 0
