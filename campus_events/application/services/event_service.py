"""Event service — event lifecycle: listing, creation, updates with change digests, deletion."""

from datetime import datetime
from typing import List

import structlog

from campus_events.application.services.auth_service import as_utc
from campus_events.core.exceptions import (
    CapacityBelowRegistrationsError,
    EventNotFoundError,
    ForbiddenException,
    NotEventOwnerError,
)
from campus_events.domain.models.event import Event
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.auth import VerifiedSession
from campus_events.domain.schemas.event import EventCreate, EventUpdate
from campus_events.domain.schemas.notification import EventNotice, Recipient

logger = structlog.get_logger(__name__)

DATE_FORMAT = "%d/%m/%Y %H:%M"


def _format_date(value: datetime) -> str:
    return as_utc(value).strftime(DATE_FORMAT)


def describe_changes(event: Event, update: dict) -> List[str]:
    """Human-readable list of what an update changes on an event."""
    changes = []

    if "title" in update and update["title"] != event.title:
        changes.append(f'Title changed from "{event.title}" to "{update["title"]}"')
    if "description" in update and update["description"] != event.description:
        changes.append("Description updated")
    if "date" in update and as_utc(update["date"]) != as_utc(event.date):
        changes.append(
            f"Date changed from {_format_date(event.date)} to {_format_date(update['date'])}"
        )
    if "location" in update and update["location"] != event.location:
        changes.append(f'Location changed from "{event.location}" to "{update["location"]}"')
    if "max_spots" in update and update["max_spots"] != event.max_spots:
        changes.append(f"Capacity changed from {event.max_spots} to {update['max_spots']} spots")

    return changes


def list_events(repo: EventRepository) -> List[Event]:
    return repo.list_with_details()


def get_event(repo: EventRepository, event_id: int) -> Event:
    event = repo.get_with_details(event_id)
    if not event:
        raise EventNotFoundError()
    return event


def create_event(
    repo: EventRepository,
    user_repo: UserRepository,
    notifier,
    body: EventCreate,
    session: VerifiedSession,
) -> Event:
    with repo.transaction():
        event = repo.create({**body.model_dump(), "date": as_utc(body.date), "creator_id": session.user_id})

    logger.info("event_created", event_id=event.id, creator_id=session.user_id, max_spots=event.max_spots)

    notifier.event_created(
        EventNotice.model_validate(event),
        Recipient(name=session.name, email=session.email),
        user_repo.admin_emails(),
    )
    return get_event(repo, event.id)


def update_event(
    repo: EventRepository,
    user_repo: UserRepository,
    notifier,
    event_id: int,
    body: EventUpdate,
    session: VerifiedSession,
) -> Event:
    """Apply a partial update. Only the creator or an admin may edit an event.

    The capacity check runs under the same row lock as registration, so
    max_spots can never drop below the number of held registrations.
    """
    update = body.model_dump(exclude_unset=True, exclude_none=True)
    if "date" in update:
        update["date"] = as_utc(update["date"])

    with repo.transaction():
        event = repo.get_for_update(event_id)
        if not event:
            raise EventNotFoundError()
        if event.creator_id != session.user_id and not session.is_admin:
            logger.info("event_update_forbidden", event_id=event_id, user_id=session.user_id)
            raise NotEventOwnerError()

        if "max_spots" in update:
            registered = repo.count_registrations(event_id)
            if update["max_spots"] < registered:
                raise CapacityBelowRegistrationsError(details={"registrations": registered})

        changes = describe_changes(event, update)
        repo.update(event, update)

    logger.info("event_updated", event_id=event_id, user_id=session.user_id, changes=len(changes))

    if changes:
        notifier.event_updated(
            EventNotice.model_validate(event),
            changes,
            repo.participant_emails(event_id),
            user_repo.admin_emails(),
        )
    return get_event(repo, event_id)


def delete_event(repo: EventRepository, event_id: int, session: VerifiedSession) -> None:
    """Delete an event and its registrations in one transaction (admin only)."""
    if not session.is_admin:
        raise ForbiddenException("Admin access required")

    with repo.transaction():
        if not repo.get_by_id(event_id):
            raise EventNotFoundError()
        repo.delete_cascade(event_id)

    logger.info("event_deleted", event_id=event_id, admin_id=session.user_id)
