from pydantic import BaseModel
from typing import List, Optional


class AvailabilityEntryIn(BaseModel):
    date: str  # "YYYY-MM-DD"
    type: str  # 'unavailable', 'allDay', 'custom'
    startTime: Optional[str] = None  # custom only, "HH:MM"
    endTime: Optional[str] = None


class AvailabilityUpdate(BaseModel):
    """Full availability map; replaces what is stored"""
    availability: List[AvailabilityEntryIn]
