"""Admin API routes — users, registrations, moderation."""

from typing import List

from fastapi import APIRouter, Depends

from campus_events.application.services import admin_service, event_service
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.admin import ManagedUserRead, RoleUpdate, UserAdminRead
from campus_events.domain.schemas.auth import VerifiedSession
from campus_events.domain.schemas.base import MessageResponse
from campus_events.domain.schemas.event import AdminRegistrationRead
from campus_events.interfaces.api.deps import EntityId, require_admin
from campus_events.interfaces.deps import get_event_repository, get_user_repository

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserAdminRead])
def list_users(
    repo: UserRepository = Depends(get_user_repository),
    admin: VerifiedSession = Depends(require_admin),
):
    return admin_service.list_users(repo)


@router.get("/registrations", response_model=List[AdminRegistrationRead])
def list_registrations(
    repo: EventRepository = Depends(get_event_repository),
    admin: VerifiedSession = Depends(require_admin),
):
    return [AdminRegistrationRead.model_validate(r) for r in admin_service.list_registrations(repo)]


@router.delete("/events/{event_id}", response_model=MessageResponse)
def delete_event(
    event_id: EntityId,
    repo: EventRepository = Depends(get_event_repository),
    admin: VerifiedSession = Depends(require_admin),
):
    event_service.delete_event(repo, event_id, admin)
    return MessageResponse(message="Event deleted successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: EntityId,
    repo: UserRepository = Depends(get_user_repository),
    admin: VerifiedSession = Depends(require_admin),
):
    admin_service.delete_user(repo, user_id, admin)
    return MessageResponse(message="User deleted successfully")


@router.put("/users/{user_id}/block", response_model=ManagedUserRead)
def toggle_block(
    user_id: EntityId,
    repo: UserRepository = Depends(get_user_repository),
    admin: VerifiedSession = Depends(require_admin),
):
    return ManagedUserRead.model_validate(admin_service.toggle_block(repo, user_id, admin))


@router.put("/users/{user_id}/role", response_model=ManagedUserRead)
def change_role(
    user_id: EntityId,
    body: RoleUpdate,
    repo: UserRepository = Depends(get_user_repository),
    admin: VerifiedSession = Depends(require_admin),
):
    return ManagedUserRead.model_validate(admin_service.change_role(repo, user_id, body.role, admin))
