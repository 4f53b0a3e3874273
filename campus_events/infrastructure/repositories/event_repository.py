"""
SQLAlchemy Implementation of Event Repository.
"""

from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from campus_events.domain.models.event import Event
from campus_events.domain.models.registration import Registration
from campus_events.domain.models.user import User
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.infrastructure.repositories.base_repository import SQLAlchemyRepository


def _detail_options():
    return (
        joinedload(Event.creator),
        selectinload(Event.registrations).joinedload(Registration.user),
    )


class SQLAlchemyEventRepository(SQLAlchemyRepository[Event], EventRepository):
    """Event repository implementation using SQLAlchemy."""

    def __init__(self, db: Session):
        super().__init__(db, Event)

    def get_with_details(self, event_id: int) -> Optional[Event]:
        return (
            self.db.query(Event)
            .options(*_detail_options())
            .filter(Event.id == event_id)
            .first()
        )

    def list_with_details(self) -> List[Event]:
        return (
            self.db.query(Event)
            .options(*_detail_options())
            .order_by(Event.date.asc(), Event.id.asc())
            .all()
        )

    def get_for_update(self, event_id: int) -> Optional[Event]:
        # FOR UPDATE is dropped by the SQLite dialect; there BEGIN IMMEDIATE
        # already holds the database write lock.
        return self.db.execute(
            select(Event)
            .where(Event.id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def count_registrations(self, event_id: int) -> int:
        return self.db.query(func.count(Registration.id)).filter(
            Registration.event_id == event_id
        ).scalar() or 0

    def find_registration(self, event_id: int, user_id: int) -> Optional[Registration]:
        return (
            self.db.query(Registration)
            .filter(Registration.event_id == event_id, Registration.user_id == user_id)
            .first()
        )

    def get_registration(self, registration_id: int) -> Optional[Registration]:
        return (
            self.db.query(Registration)
            .options(joinedload(Registration.user))
            .filter(Registration.id == registration_id)
            .first()
        )

    def add_registration(self, event_id: int, user_id: int) -> Registration:
        registration = Registration(event_id=event_id, user_id=user_id)
        self.db.add(registration)
        self.db.flush()
        return registration

    def list_registrations(self) -> List[Registration]:
        return (
            self.db.query(Registration)
            .options(joinedload(Registration.user), joinedload(Registration.event))
            .order_by(Registration.registered_at.desc(), Registration.id.desc())
            .all()
        )

    def participant_emails(self, event_id: int) -> List[str]:
        rows = (
            self.db.query(User.email)
            .join(Registration, Registration.user_id == User.id)
            .filter(Registration.event_id == event_id)
            .all()
        )
        return [r[0] for r in rows]

    def delete_cascade(self, event_id: int) -> None:
        self.db.execute(delete(Registration).where(Registration.event_id == event_id))
        self.db.execute(delete(Event).where(Event.id == event_id))
        self.db.flush()
