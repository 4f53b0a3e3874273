"""Events API routes — browse, create, edit, register, unregister."""

from typing import List

from fastapi import APIRouter, Depends, status

from campus_events.application.services import event_service, registration_service
from campus_events.application.services.notification_service import BackgroundNotifier
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.auth import VerifiedSession
from campus_events.domain.schemas.base import MessageResponse
from campus_events.domain.schemas.event import EventCreate, EventRead, EventUpdate, RegistrationRead
from campus_events.interfaces.api.deps import EntityId, get_current_session
from campus_events.interfaces.deps import get_event_repository, get_notifier, get_user_repository

router = APIRouter(prefix="/api/events", tags=["Events"])


@router.get("", response_model=List[EventRead])
def list_events(repo: EventRepository = Depends(get_event_repository)):
    return [EventRead.model_validate(e) for e in event_service.list_events(repo)]


@router.get("/{event_id}", response_model=EventRead)
def get_event(event_id: EntityId, repo: EventRepository = Depends(get_event_repository)):
    return EventRead.model_validate(event_service.get_event(repo, event_id))


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
def create_event(
    body: EventCreate,
    repo: EventRepository = Depends(get_event_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    notifier: BackgroundNotifier = Depends(get_notifier),
    session: VerifiedSession = Depends(get_current_session),
):
    event = event_service.create_event(repo, user_repo, notifier, body, session)
    return EventRead.model_validate(event)


@router.put("/{event_id}", response_model=EventRead)
def update_event(
    event_id: EntityId,
    body: EventUpdate,
    repo: EventRepository = Depends(get_event_repository),
    user_repo: UserRepository = Depends(get_user_repository),
    notifier: BackgroundNotifier = Depends(get_notifier),
    session: VerifiedSession = Depends(get_current_session),
):
    event = event_service.update_event(repo, user_repo, notifier, event_id, body, session)
    return EventRead.model_validate(event)


@router.post("/{event_id}/register", response_model=RegistrationRead, status_code=status.HTTP_201_CREATED)
def register_for_event(
    event_id: EntityId,
    repo: EventRepository = Depends(get_event_repository),
    notifier: BackgroundNotifier = Depends(get_notifier),
    session: VerifiedSession = Depends(get_current_session),
):
    registration = registration_service.register_for_event(repo, notifier, event_id, session)
    return RegistrationRead.model_validate(registration)


@router.post("/{event_id}/unregister", response_model=MessageResponse)
def unregister_from_event(
    event_id: EntityId,
    repo: EventRepository = Depends(get_event_repository),
    session: VerifiedSession = Depends(get_current_session),
):
    registration_service.unregister_from_event(repo, event_id, session)
    return MessageResponse(message="Unregistered successfully")
