import logging
from datetime import datetime
from typing import Dict, Any, List
from database.supabase_client import get_supabase
from models.auth import Role, Session
from modules.rota.errors import ValidationError

logger = logging.getLogger(__name__)

AUDIENCES = ("all", "employees", "managers")


def audiences_for(role: Role) -> List[str]:
    """Announcement audiences visible to a role"""
    if role is Role.MANAGER:
        return list(AUDIENCES)
    elif role is Role.EMPLOYEE:
        return ["all", "employees"]
    raise AssertionError(f"Unhandled role: {role}")


class AnnouncementsService:
    def __init__(self):
        self.supabase = get_supabase()

    async def create_announcement(
        self,
        announcement_data: Dict[str, Any],
        created_by: str
    ) -> Dict[str, Any]:
        """Create an announcement. Announcements are never edited afterwards."""
        title = (announcement_data.get("title") or "").strip()
        message = (announcement_data.get("message") or "").strip()
        if not title or not message:
            raise ValidationError("Title and message are required.")

        audience = announcement_data.get("audience") or "all"
        if audience not in AUDIENCES:
            raise ValidationError(f"Audience must be one of: {', '.join(AUDIENCES)}")

        payload = {
            "title": title,
            "message": message,
            "audience": audience,
            "attachments": list(announcement_data.get("attachments") or []),
            "created_by": created_by,
            "created_at": datetime.utcnow().isoformat()
        }

        try:
            result = self.supabase.table("announcements").insert(payload).execute()
        except Exception as e:
            logger.error(f"Create announcement error: {e}")
            raise e

        if not result.data:
            raise Exception("Insert returned no data")

        logger.info(f"Announcement {result.data[0]['id']} posted to '{audience}' by {created_by}")
        return result.data[0]

    async def list_announcements(self, session: Session, limit: int = 50) -> List[Dict[str, Any]]:
        result = self.supabase.table("announcements") \
            .select("*") \
            .in_("audience", audiences_for(session.role)) \
            .order("created_at", desc=True) \
            .limit(limit) \
            .execute()
        return result.data or []
