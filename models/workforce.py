from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class AnnouncementCreate(BaseModel):
    """Request model for posting an announcement"""
    title: str
    message: str
    audience: str = "all"  # 'all', 'employees', 'managers'
    attachments: List[str] = []


class PayrollCreate(BaseModel):
    employeeId: str
    start: str  # "YYYY-MM-DD"
    end: str
    rate: Optional[float] = Field(None, ge=0)  # defaults to the employee's hourly rate


class ClockIn(BaseModel):
    shiftId: Optional[str] = None
    shiftType: Optional[str] = None


class EmergencyContactCreate(BaseModel):
    fullName: str = ""
    relationship: str = ""
    phoneNumber: str = ""


class MessageCreate(BaseModel):
    text: str


class ProfileUpdate(BaseModel):
    """Fields left out keep their current value"""
    fullName: Optional[str] = None
    jobTitle: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    profileImage: Optional[str] = None
