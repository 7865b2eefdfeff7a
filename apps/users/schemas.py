from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class AdminTokenRequest(BaseModel):
    """
    Credentials exchanged for an admin bearer token.
    """
    username: str = Field(..., min_length=1, max_length=40)
    password: str = Field(..., min_length=1, max_length=128)


class UserCreate(BaseModel):
    """
    Payload for creating an admin user bound to one role.
    """
    username: str = Field(..., min_length=1, max_length=40)
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=64)
    last_name: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)
    role_id: int
    is_active: bool = True


class UserOut(BaseModel):
    """
    Public admin user model returned to clients (no sensitive fields).
    """
    id: int
    username: str
    email: EmailStr
    first_name: str
    last_name: str
    is_active: bool
    role_id: int
    created_at: Optional[str]
    updated_at: Optional[str]
