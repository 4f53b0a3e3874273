"""User domain model — maps to the 'users' table."""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from campus_events.infrastructure.database import Base


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    is_blocked = Column(Boolean, nullable=False, default=False)

    # Email verification: token and expiry are always set or cleared together
    email_verified = Column(Boolean, nullable=False, default=False)
    verification_token = Column(String(64), unique=True, nullable=True)
    verification_expires = Column(DateTime(timezone=True), nullable=True)
    consumed_token_digest = Column(String(64), unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    events = relationship("Event", back_populates="creator", passive_deletes=True)
    registrations = relationship("Registration", back_populates="user", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self):
        return f"<User {self.email}>"
