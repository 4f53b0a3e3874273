"""
Event Repository Interface.
Defines specific data access operations for Events and their Registrations.
"""

from typing import List, Optional

from campus_events.domain.repositories.base import BaseRepository
from campus_events.domain.models.event import Event
from campus_events.domain.models.registration import Registration


class EventRepository(BaseRepository[Event]):
    """Interface for Event-specific operations."""

    def get_with_details(self, event_id: int) -> Optional[Event]:
        """Get an event with creator and registrations (with users) loaded."""
        ...

    def list_with_details(self) -> List[Event]:
        """List all events ordered by date, details loaded."""
        ...

    def get_for_update(self, event_id: int) -> Optional[Event]:
        """Get an event, locking its row until the transaction ends."""
        ...

    def count_registrations(self, event_id: int) -> int:
        """Count registrations held for an event."""
        ...

    def find_registration(self, event_id: int, user_id: int) -> Optional[Registration]:
        """Get the registration of a user for an event, if any."""
        ...

    def get_registration(self, registration_id: int) -> Optional[Registration]:
        """Get a registration with its user loaded."""
        ...

    def add_registration(self, event_id: int, user_id: int) -> Registration:
        """Insert a registration row (flush only)."""
        ...

    def list_registrations(self) -> List[Registration]:
        """All registrations, newest first, with user and event loaded."""
        ...

    def participant_emails(self, event_id: int) -> List[str]:
        """Emails of every user registered for an event."""
        ...

    def delete_cascade(self, event_id: int) -> None:
        """Delete an event's registrations and then the event (flush only)."""
        ...
