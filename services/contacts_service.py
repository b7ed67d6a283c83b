import logging
import re
from datetime import datetime
from typing import Dict, Any, List
from database.supabase_client import get_supabase
from modules.rota.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def is_valid_phone(phone: str) -> bool:
    """At least 10 digits once punctuation and spaces are stripped"""
    return len(re.sub(r"\D", "", phone or "")) >= 10


class EmergencyContactsService:
    def __init__(self):
        self.supabase = get_supabase()

    async def list_contacts(self, employee_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("emergency_contacts") \
            .select("*") \
            .eq("employee_id", employee_id) \
            .order("created_at") \
            .execute()
        return result.data or []

    async def add_contact(self, employee_id: str, contact: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Add a contact and return the employee's updated list"""
        full_name = (contact.get("fullName") or "").strip()
        relationship = (contact.get("relationship") or "").strip()
        phone_number = (contact.get("phoneNumber") or "").strip()

        if not full_name or not relationship or not phone_number:
            raise ValidationError("Please fill in all fields.")
        if not is_valid_phone(phone_number):
            raise ValidationError("Please enter a valid phone number.")

        self.supabase.table("emergency_contacts").insert({
            "employee_id": employee_id,
            "full_name": full_name,
            "relationship": relationship,
            "phone_number": phone_number,
            "created_at": datetime.utcnow().isoformat()
        }).execute()

        return await self.list_contacts(employee_id)

    async def delete_contact(self, employee_id: str, contact_id: str) -> List[Dict[str, Any]]:
        """Delete one of the employee's contacts and return the remaining list"""
        result = self.supabase.table("emergency_contacts") \
            .delete() \
            .eq("id", contact_id) \
            .eq("employee_id", employee_id) \
            .execute()

        if not result.data:
            raise NotFoundError("Contact not found")

        logger.info(f"Emergency contact {contact_id} deleted by {employee_id}")
        return await self.list_contacts(employee_id)
