"""
API Dependencies.
"""

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from campus_events.application.services.auth_service import SessionTokenService
from campus_events.application.services.notification_service import BackgroundNotifier
from campus_events.config import Settings
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.infrastructure.database import get_db
from campus_events.infrastructure.repositories.event_repository import SQLAlchemyEventRepository
from campus_events.infrastructure.repositories.user_repository import SQLAlchemyUserRepository


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    """Get user repository instance."""
    return SQLAlchemyUserRepository(db)


def get_event_repository(db: Session = Depends(get_db)) -> EventRepository:
    """Get event repository instance."""
    return SQLAlchemyEventRepository(db)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> SessionTokenService:
    return request.app.state.tokens


def get_notifier(request: Request, background_tasks: BackgroundTasks) -> BackgroundNotifier:
    """Notifications run after the response is sent."""
    return BackgroundNotifier(request.app.state.notifier, background_tasks)
