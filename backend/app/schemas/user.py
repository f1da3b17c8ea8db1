"""User 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime


class UserOut(BaseModel):
    user_id: int
    username: str
    roles: List[str]
    department: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegisterRequest(BaseModel):
    username: EmailStr
    password: str = Field(min_length=8, max_length=128)
    roles: List[str] = Field(default_factory=lambda: ["staff"])
    department: str


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=128)
