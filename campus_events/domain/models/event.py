"""Event domain model — maps to the 'events' table."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from campus_events.infrastructure.database import Base


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("max_spots >= 1", name="ck_events_max_spots_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    max_spots = Column(Integer, nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    creator = relationship("User", back_populates="events")
    registrations = relationship(
        "Registration",
        back_populates="event",
        order_by="Registration.registered_at",
        passive_deletes=True,
    )

    @property
    def remaining_spots(self) -> int:
        return self.max_spots - len(self.registrations)

    def __repr__(self):
        return f"<Event {self.id} - {self.title}>"
