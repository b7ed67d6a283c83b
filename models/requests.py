from pydantic import BaseModel
from typing import List, Optional


class HolidayBooking(BaseModel):
    startDate: str  # "YYYY-MM-DD" or an ISO timestamp
    endDate: str
    type: str = "Paid"  # 'Paid' or 'Unpaid'
    reason: Optional[str] = None


class SickCall(BaseModel):
    shiftId: str
    reason: Optional[str] = None
    userId: Optional[str] = None  # ignored; the caller comes from the token


class SwapRequestCreate(BaseModel):
    currentShiftId: str
    targetShiftId: str
    targetEmployeeId: Optional[str] = None  # defaults to the target shift's only employee
    reason: Optional[str] = None
    userId: Optional[str] = None  # ignored; the caller comes from the token


class ApprovalDecision(BaseModel):
    requestId: str
    requestType: str  # 'shiftSwap', 'sickLeave', 'holiday'
    action: str  # 'approve' or 'deny'


class AllRequestsResponse(BaseModel):
    shiftSwaps: List[dict]
    sickLeaves: List[dict]
    holidays: List[dict]
