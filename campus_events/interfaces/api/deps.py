"""FastAPI dependency — bearer session auth."""

from typing import Annotated, Optional

from fastapi import Depends, Path
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campus_events.application.services.auth_service import SessionTokenService, resolve_session
from campus_events.core.exceptions import ForbiddenException, UnauthorizedException
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.auth import VerifiedSession
from campus_events.domain.schemas.base import MAX_INT32
from campus_events.interfaces.deps import get_token_service, get_user_repository

# auto_error=False so a missing header is a 401 in our error format, not FastAPI's 403
security = HTTPBearer(auto_error=False)

# Path ids outside the column range can never match a row; reject them before they reach the driver
EntityId = Annotated[int, Path(ge=1, le=MAX_INT32)]


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    repo: UserRepository = Depends(get_user_repository),
    tokens: SessionTokenService = Depends(get_token_service),
) -> VerifiedSession:
    """Extract and validate the caller from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Access token required")
    return resolve_session(repo, tokens, credentials.credentials)


def require_admin(session: VerifiedSession = Depends(get_current_session)) -> VerifiedSession:
    """Require admin role."""
    if not session.is_admin:
        raise ForbiddenException("Admin access required")
    return session
