"""Plain snapshots handed to background notification tasks.

Background tasks run after the request session is closed, so they never
receive live ORM instances.
"""

from datetime import datetime

from pydantic import BaseModel


class Recipient(BaseModel):
    name: str
    email: str

    model_config = {"from_attributes": True}


class EventNotice(BaseModel):
    id: int
    title: str
    description: str = ""
    date: datetime
    location: str
    max_spots: int

    model_config = {"from_attributes": True}
