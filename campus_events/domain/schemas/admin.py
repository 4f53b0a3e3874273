"""Pydantic schemas for the admin dashboard."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from campus_events.domain.schemas.auth import UserRead
from campus_events.domain.schemas.base import CamelModel


class UserCounts(CamelModel):
    events: int = 0
    registrations: int = 0


class UserAdminRead(CamelModel):
    id: int
    email: str
    name: str
    role: str
    email_verified: bool
    is_blocked: bool
    created_at: Optional[datetime] = None
    counts: UserCounts = Field(default_factory=UserCounts, alias="_count")


class RoleUpdate(CamelModel):
    role: str


class ManagedUserRead(UserRead):
    """A user as returned after a block or role change."""

    is_blocked: bool
