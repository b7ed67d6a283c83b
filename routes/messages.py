from fastapi import APIRouter, Depends, status
from models.auth import Session
from models.workforce import MessageCreate
from services.auth_service import get_current_session
from services.messages_service import MessagesService

router = APIRouter(prefix="/api/messages", tags=["messages"])


@router.get("/{user_id}")
async def get_conversation(
    user_id: str,
    session: Session = Depends(get_current_session)
):
    """Messages between the caller and `user_id`, oldest first"""
    service = MessagesService()
    return await service.conversation(session.staff_id, user_id)


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
async def send_message(
    user_id: str,
    body: MessageCreate,
    session: Session = Depends(get_current_session)
):
    service = MessagesService()
    message = await service.send_message(session.staff_id, user_id, body.text)
    return {
        "success": True,
        "message": message
    }
