"""
User Repository Interface.
Defines specific data access operations for Users.
"""

from typing import List, Optional, Tuple

from campus_events.domain.repositories.base import BaseRepository
from campus_events.domain.models.user import User


class UserRepository(BaseRepository[User]):
    """Interface for User-specific operations."""

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by (normalized) email."""
        ...

    def get_by_verification_token(self, token: str) -> Optional[User]:
        """Get the user holding an active verification token."""
        ...

    def get_by_consumed_token_digest(self, digest: str) -> Optional[User]:
        """Get the user whose account was verified by a token with this digest."""
        ...

    def list_with_counts(self) -> List[Tuple[User, int, int]]:
        """Users newest first, with (events created, registrations held) counts."""
        ...

    def admin_emails(self) -> List[str]:
        """Emails of every admin account."""
        ...

    def delete_cascade(self, user_id: int) -> None:
        """Delete a user's registrations, events (with their registrations) and the user (flush only)."""
        ...
