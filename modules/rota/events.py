from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class EventType(str, Enum):
    SHIFT_SWAP_UPDATE = "shiftSwapUpdate"
    SICK_LEAVE_UPDATE = "sickLeaveUpdate"
    HOLIDAY_UPDATE = "holidayUpdate"
    NEW_EMPLOYEE_ADDED = "newEmployeeAdded"
    SHIFT_MISSED = "shiftMissed"


MANAGER_ROOM = "managers"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


class RealtimeEvent(BaseModel):
    """Frame pushed to WebSocket subscribers."""
    event: EventType
    data: Dict[str, Any] = {}
    sent_at: datetime = Field(default_factory=datetime.utcnow)


def event_for_request_type(request_type: str) -> EventType:
    """Realtime event announcing a change to an approval request of `request_type`."""
    if request_type == "shiftSwap":
        return EventType.SHIFT_SWAP_UPDATE
    elif request_type == "sickLeave":
        return EventType.SICK_LEAVE_UPDATE
    elif request_type == "holiday":
        return EventType.HOLIDAY_UPDATE
    raise ValueError(f"No realtime event for request type '{request_type}'")
