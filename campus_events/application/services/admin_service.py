"""Admin service — user management and registration overview."""

from typing import List

import structlog

from campus_events.core.exceptions import (
    InvalidRoleError,
    SelfBlockForbiddenError,
    SelfDeleteForbiddenError,
    SelfDemoteForbiddenError,
    UserNotFoundError,
)
from campus_events.domain.models.registration import Registration
from campus_events.domain.models.user import Role, User
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.admin import UserAdminRead, UserCounts
from campus_events.domain.schemas.auth import VerifiedSession

logger = structlog.get_logger(__name__)


def _to_admin_read(user: User, events: int, registrations: int) -> UserAdminRead:
    read = UserAdminRead.model_validate(user)
    read.counts = UserCounts(events=events, registrations=registrations)
    return read


def list_users(repo: UserRepository) -> List[UserAdminRead]:
    """All users with their event and registration counts, newest first."""
    return [_to_admin_read(user, events, registrations) for user, events, registrations in repo.list_with_counts()]


def list_registrations(repo: EventRepository) -> List[Registration]:
    return repo.list_registrations()


def _get_user(repo: UserRepository, user_id: int) -> User:
    user = repo.get_by_id(user_id)
    if not user:
        raise UserNotFoundError()
    return user


def delete_user(repo: UserRepository, user_id: int, session: VerifiedSession) -> None:
    """Delete a user with their registrations and created events, in one transaction."""
    if user_id == session.user_id:
        raise SelfDeleteForbiddenError()

    with repo.transaction():
        _get_user(repo, user_id)
        repo.delete_cascade(user_id)

    logger.info("user_deleted", user_id=user_id, admin_id=session.user_id)


def toggle_block(repo: UserRepository, user_id: int, session: VerifiedSession) -> User:
    if user_id == session.user_id:
        raise SelfBlockForbiddenError()

    with repo.transaction():
        user = _get_user(repo, user_id)
        repo.update(user, {"is_blocked": not user.is_blocked})

    logger.info("user_block_toggled", user_id=user_id, is_blocked=user.is_blocked, admin_id=session.user_id)
    return user


def change_role(repo: UserRepository, user_id: int, role: str, session: VerifiedSession) -> User:
    try:
        new_role = Role(role)
    except ValueError:
        raise InvalidRoleError()

    if user_id == session.user_id and new_role != Role.ADMIN:
        raise SelfDemoteForbiddenError()

    with repo.transaction():
        user = _get_user(repo, user_id)
        repo.update(user, {"role": new_role.value})

    logger.info("user_role_changed", user_id=user_id, role=new_role.value, admin_id=session.user_id)
    return user
