from datetime import datetime

from pydantic import BaseModel, Field

from app.core.enums import UserRole


class LoginRequest(BaseModel):
    login_id: str = Field(..., min_length=1, description="NIP for staff, NIS for students")
    password: str


class UserInfo(BaseModel):
    id: int
    name: str
    login_id: str
    role: UserRole


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user, taken from the verified token."""

    id: int
    role: UserRole
    display_name: str
