from pydantic import BaseModel
from typing import List, Optional


class TaskIn(BaseModel):
    description: str
    assignedTo: str


class ShiftCreate(BaseModel):
    """Request model for creating a rota shift"""
    date: str  # "YYYY-MM-DD"
    startTime: str  # "HH:MM"
    endTime: str
    employees: List[str]
    tasks: List[TaskIn]


class ShiftUpdate(BaseModel):
    """Request model for modifying a shift; omitted fields keep their value"""
    date: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    employees: Optional[List[str]] = None
    tasks: Optional[List[TaskIn]] = None
    version: Optional[int] = None  # optimistic concurrency: must match the stored version


class Task(BaseModel):
    description: str
    assigned_to: str


class ShiftResponse(BaseModel):
    """Response model for a shift"""
    id: str
    date: str
    start_time: str
    end_time: str
    employees: List[str]
    tasks: List[Task]
    status: str
    version: int
    created_by: Optional[str] = None
    created_at: Optional[str] = None
