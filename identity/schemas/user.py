# identity/schemas/user.py
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
import uuid

from identity.core.errors import AccountError
from identity.models.users import UserRole


class CreateAccountInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole = UserRole.CLIENT


class LoginInput(BaseModel):
    email: EmailStr
    password: str


class EditProfileInput(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1)


class VerifyEmailInput(BaseModel):
    code: str


class CoreOutput(BaseModel):
    ok: bool
    error: Optional[AccountError] = None


class LoginOutput(CoreOutput):
    token: Optional[str] = None


class UserResponse(BaseModel):
    id: uuid.UUID
    email: EmailStr
    role: UserRole
    verified: bool

    class Config:
        from_attributes = True


class UserProfileOutput(CoreOutput):
    user: Optional[UserResponse] = None
