from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    EMPLOYEE = "Employee"
    MANAGER = "Manager"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Case-insensitive lookup ("manager", "Manager")."""
        for role in cls:
            if role.value.lower() == str(value).strip().lower():
                return role
        raise ValueError(f"Unknown role '{value}'")


class Session(BaseModel):
    """Authenticated caller, decoded from the bearer token for one request."""
    staff_id: str
    email: str
    full_name: str
    role: Role

    @property
    def is_manager(self) -> bool:
        return self.role is Role.MANAGER


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: str = "Employee"
    hourlyRate: Optional[float] = Field(None, ge=0)


class UserSummary(BaseModel):
    id: str
    role: Role
    fullName: str
    email: str


class AuthResponse(BaseModel):
    success: bool
    token: str
    user: UserSummary
