"""Pydantic schemas for User and Auth."""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from campus_events.domain.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=4)
    name: str = Field(min_length=1, max_length=200)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class UserBrief(CamelModel):
    id: int
    name: str
    email: str


class SessionUser(UserBrief):
    role: str


class UserRead(SessionUser):
    email_verified: bool
    created_at: Optional[datetime] = None


class TokenResponse(CamelModel):
    token: str
    user: SessionUser


class RegisterResponse(CamelModel):
    message: str
    email: str


class VerifyEmailResponse(CamelModel):
    message: str
    verified: bool = False
    already_verified: bool = False


class VerifiedSession(CamelModel):
    """The authenticated caller, produced once per request from the bearer token."""

    user_id: int
    email: str
    name: str
    role: str

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
