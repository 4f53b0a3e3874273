"""
SQLAlchemy Implementation of User Repository.
"""

from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from campus_events.domain.models.event import Event
from campus_events.domain.models.registration import Registration
from campus_events.domain.models.user import Role, User
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """User repository implementation using SQLAlchemy."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self.db.query(User).filter(User.verification_token == token).first()

    def get_by_consumed_token_digest(self, digest: str) -> Optional[User]:
        return self.db.query(User).filter(User.consumed_token_digest == digest).first()

    def list_with_counts(self) -> List[Tuple[User, int, int]]:
        events_count = (
            select(func.count(Event.id))
            .where(Event.creator_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        registrations_count = (
            select(func.count(Registration.id))
            .where(Registration.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
        )
        rows = (
            self.db.query(User, events_count.label("events"), registrations_count.label("registrations"))
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )
        return [(user, events or 0, registrations or 0) for user, events, registrations in rows]

    def admin_emails(self) -> List[str]:
        rows = self.db.query(User.email).filter(User.role == Role.ADMIN.value).all()
        return [r[0] for r in rows]

    def delete_cascade(self, user_id: int) -> None:
        created_events = select(Event.id).where(Event.creator_id == user_id)

        self.db.execute(delete(Registration).where(Registration.user_id == user_id))
        self.db.execute(delete(Registration).where(Registration.event_id.in_(created_events)))
        self.db.execute(delete(Event).where(Event.creator_id == user_id))
        self.db.execute(delete(User).where(User.id == user_id))
        self.db.flush()
