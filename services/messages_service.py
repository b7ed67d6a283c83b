import logging
from datetime import datetime
from typing import Dict, Any, List
from database.supabase_client import get_supabase
from modules.rota.errors import ValidationError
from services.staff_service import get_staff_member

logger = logging.getLogger(__name__)


class MessagesService:
    def __init__(self):
        self.supabase = get_supabase()

    async def conversation(self, user_id: str, other_id: str) -> List[Dict[str, Any]]:
        """Messages exchanged between two users, oldest first"""
        result = self.supabase.table("messages") \
            .select("*") \
            .in_("sender_id", [user_id, other_id]) \
            .in_("recipient_id", [user_id, other_id]) \
            .order("created_at") \
            .execute()

        return [
            m for m in result.data or []
            if {m["sender_id"], m["recipient_id"]} == {user_id, other_id}
        ]

    async def send_message(self, sender_id: str, recipient_id: str, text: str) -> Dict[str, Any]:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message text is required")
        if sender_id == recipient_id:
            raise ValidationError("You cannot message yourself")

        await get_staff_member(recipient_id)

        result = self.supabase.table("messages").insert({
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "text": text,
            "created_at": datetime.utcnow().isoformat()
        }).execute()

        if not result.data:
            raise Exception("Insert returned no data")
        return result.data[0]
