"""
Global exception handling for the application.
Every error response has the shape {"error": {"code", "message", "details", "path"}}.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""

    code = "APP_ERROR"
    default_message = "Application error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# --- Generic categories ---

class ValidationException(AppError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"
    status_code = status.HTTP_400_BAD_REQUEST


class EntityNotFoundException(AppError):
    """Resource not found error."""
    code = "NOT_FOUND"
    default_message = "Entity not found"
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleViolationException(AppError):
    """Client-correctable conflict with the current state."""
    code = "BUSINESS_RULE_VIOLATION"
    default_message = "Business rule violation"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedException(AppError):
    """Authentication failure error."""
    code = "UNAUTHORIZED"
    default_message = "Authentication required"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(AppError):
    """Authorization failure error."""
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"
    status_code = status.HTTP_403_FORBIDDEN


# --- Credentials & tokens ---

class InvalidCredentialsError(UnauthorizedException):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class InvalidSessionError(UnauthorizedException):
    code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class AccountBlockedError(ForbiddenException):
    code = "ACCOUNT_BLOCKED"
    default_message = "Your account has been blocked. Please contact support."


class EmailNotVerifiedError(ForbiddenException):
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Please verify your email before logging in"

    def __init__(self, email: str):
        super().__init__(details={"emailNotVerified": True, "email": email})


class EmailAlreadyRegisteredError(BusinessRuleViolationException):
    code = "EMAIL_ALREADY_REGISTERED"
    default_message = "Email already registered"


class EmailAlreadyVerifiedError(BusinessRuleViolationException):
    code = "EMAIL_ALREADY_VERIFIED"
    default_message = "Email already verified"


class TokenNotFoundError(BusinessRuleViolationException):
    code = "TOKEN_NOT_FOUND"
    default_message = "Invalid or expired verification token"


class TokenExpiredError(BusinessRuleViolationException):
    code = "TOKEN_EXPIRED"
    default_message = "Verification token has expired"

    def __init__(self):
        super().__init__(details={"canResend": True})


# --- Events & registrations ---

class EventNotFoundError(EntityNotFoundException):
    code = "EVENT_NOT_FOUND"
    default_message = "Event not found"


class EventFullError(BusinessRuleViolationException):
    code = "EVENT_FULL"
    default_message = "Event is full"


class AlreadyRegisteredError(BusinessRuleViolationException):
    code = "ALREADY_REGISTERED"
    default_message = "Already registered"


class RegistrationNotFoundError(EntityNotFoundException):
    code = "REGISTRATION_NOT_FOUND"
    default_message = "Registration not found"


class CapacityBelowRegistrationsError(BusinessRuleViolationException):
    code = "CAPACITY_BELOW_REGISTRATIONS"
    default_message = "Capacity cannot be lower than the number of registered attendees"


class NotEventOwnerError(ForbiddenException):
    code = "FORBIDDEN"
    default_message = "Only the event creator or an administrator can modify this event"


# --- Admin user management ---

class UserNotFoundError(EntityNotFoundException):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class SelfDeleteForbiddenError(BusinessRuleViolationException):
    code = "SELF_DELETE_FORBIDDEN"
    default_message = "You cannot delete your own account"


class SelfBlockForbiddenError(BusinessRuleViolationException):
    code = "SELF_BLOCK_FORBIDDEN"
    default_message = "You cannot block your own account"


class SelfDemoteForbiddenError(BusinessRuleViolationException):
    code = "SELF_DEMOTE_FORBIDDEN"
    default_message = "You cannot remove your own admin role"


class InvalidRoleError(BusinessRuleViolationException):
    code = "INVALID_ROLE"
    default_message = "Role must be ADMIN or USER"


def _error_body(request: Request, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> dict:
    body = {"code": code, "message": message, "path": request.url.path}
    if details is not None:
        body["details"] = details
    return {"error": body}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors with their machine-readable code."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.code, exc.message, exc.details),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a 400, not FastAPI's default 422."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, ValidationException.code, "Invalid request", {"errors": errors}),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unhandled error", path=request.url.path, method=request.method)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
