"""Registration service — capacity-safe sign-up for events."""

import structlog
from sqlalchemy.exc import IntegrityError

from campus_events.core.exceptions import (
    AlreadyRegisteredError,
    EventFullError,
    EventNotFoundError,
    RegistrationNotFoundError,
)
from campus_events.domain.models.registration import Registration
from campus_events.domain.repositories.event_repository import EventRepository
from campus_events.domain.schemas.auth import VerifiedSession
from campus_events.domain.schemas.notification import EventNotice, Recipient

logger = structlog.get_logger(__name__)


def register_for_event(repo: EventRepository, notifier, event_id: int, session: VerifiedSession) -> Registration:
    """Take one spot on an event for the caller.

    The event row is locked before counting, so concurrent attempts on the
    last spot serialize and exactly one of them succeeds.
    """
    try:
        with repo.transaction():
            event = repo.get_for_update(event_id)
            if not event:
                raise EventNotFoundError()

            if repo.find_registration(event_id, session.user_id):
                raise AlreadyRegisteredError()

            registered = repo.count_registrations(event_id)
            if registered >= event.max_spots:
                logger.info("event_full", event_id=event_id, user_id=session.user_id, max_spots=event.max_spots)
                raise EventFullError()

            registration = repo.add_registration(event_id, session.user_id)
            notice = EventNotice.model_validate(event)
            organizer_email = event.creator.email
    except IntegrityError:
        # Unique (event_id, user_id) caught a duplicate the lookup missed
        raise AlreadyRegisteredError()

    logger.info(
        "event_registration_created",
        event_id=event_id,
        user_id=session.user_id,
        registration_id=registration.id,
        remaining_spots=notice.max_spots - registered - 1,
    )

    notifier.registration_created(notice, Recipient(name=session.name, email=session.email), organizer_email)
    return repo.get_registration(registration.id)


def unregister_from_event(repo: EventRepository, event_id: int, session: VerifiedSession) -> None:
    with repo.transaction():
        registration = repo.find_registration(event_id, session.user_id)
        if not registration:
            raise RegistrationNotFoundError()
        repo.delete(registration)

    logger.info("event_registration_removed", event_id=event_id, user_id=session.user_id)
