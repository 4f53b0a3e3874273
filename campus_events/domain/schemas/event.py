"""Pydantic schemas for Events and Registrations."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from campus_events.domain.schemas.auth import UserBrief
from campus_events.domain.schemas.base import MAX_INT32, CamelModel


class EventBase(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    date: datetime
    location: str = Field(min_length=1, max_length=255)
    max_spots: int = Field(ge=1, le=MAX_INT32)


class EventCreate(EventBase):
    pass


class EventUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[datetime] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    max_spots: Optional[int] = Field(default=None, ge=1, le=MAX_INT32)


class EventBrief(CamelModel):
    id: int
    title: str
    date: datetime
    location: str


class RegistrationRead(CamelModel):
    id: int
    event_id: int
    user_id: int
    registered_at: Optional[datetime] = None
    user: UserBrief


class AdminRegistrationRead(RegistrationRead):
    event: EventBrief


class EventRead(EventBase):
    id: int
    creator_id: int
    created_at: Optional[datetime] = None
    creator: UserBrief
    remaining_spots: int
    registrations: list[RegistrationRead] = []
