from fastapi import APIRouter, Depends
from models.auth import Session
from models.workforce import EmergencyContactCreate
from services.auth_service import get_current_session
from services.contacts_service import EmergencyContactsService

router = APIRouter(prefix="/api/emergencyContacts", tags=["emergency contacts"])


@router.get("")
async def get_contacts(session: Session = Depends(get_current_session)):
    service = EmergencyContactsService()
    return await service.list_contacts(session.staff_id)


@router.post("")
async def add_contact(
    contact: EmergencyContactCreate,
    session: Session = Depends(get_current_session)
):
    """Add a contact; returns the caller's full list"""
    service = EmergencyContactsService()
    contacts = await service.add_contact(session.staff_id, contact.model_dump())
    return {
        "success": True,
        "message": "Contact added successfully!",
        "contacts": contacts
    }


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    session: Session = Depends(get_current_session)
):
    service = EmergencyContactsService()
    contacts = await service.delete_contact(session.staff_id, contact_id)
    return {
        "success": True,
        "contacts": contacts
    }
