"""
Base Repository Interface.
Data access contract shared by the user and event repositories.
"""

from typing import Any, ContextManager, Optional, Protocol, TypeVar

from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Persistence for one aggregate.

    Writes only flush. Callers group them in ``transaction()``, which commits
    on success and rolls back on any exception.
    """

    db: Session

    def get_by_id(self, id: int) -> Optional[T]:
        ...

    def create(self, obj_in: Any) -> T:
        """Insert from a dict or pydantic model."""
        ...

    def update(self, db_obj: T, obj_in: Any) -> T:
        """Set the given fields (dict or pydantic model, unset fields skipped)."""
        ...

    def delete(self, db_obj: T) -> None:
        ...

    def transaction(self) -> ContextManager[Session]:
        ...
