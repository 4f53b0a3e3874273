"""Auth service — password hashing, session tokens and the email-verification lifecycle."""

import enum
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError

from campus_events.config import Settings
from campus_events.core.exceptions import (
    AccountBlockedError,
    EmailAlreadyRegisteredError,
    EmailAlreadyVerifiedError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidSessionError,
    TokenExpiredError,
    TokenNotFoundError,
)
from campus_events.domain.models.user import Role, User
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.auth import RegisterRequest, VerifiedSession
from campus_events.domain.schemas.notification import Recipient

logger = structlog.get_logger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

VERIFICATION_TOKEN_BYTES = 32


class VerificationResult(str, enum.Enum):
    VERIFIED = "verified"
    ALREADY_VERIFIED = "already_verified"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_email(email: str) -> str:
    return email.strip().lower()


# --- Passwords ---

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Malformed or unknown hash format
        return False


# --- Verification tokens ---

def issue_verification_token(ttl_hours: int = 24) -> tuple[str, datetime]:
    """Return a fresh 256-bit hex token and its expiry."""
    token = secrets.token_hex(VERIFICATION_TOKEN_BYTES)
    return token, utcnow() + timedelta(hours=ttl_hours)


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# --- Sessions ---

def ensure_can_hold_session(user: User) -> None:
    """Blocked users and unverified non-admins never get a session."""
    if user.is_blocked:
        raise AccountBlockedError()
    if not user.email_verified and not user.is_admin:
        raise EmailNotVerifiedError(user.email)


class SessionTokenService:
    """Signs and verifies session JWTs with the process-wide secret."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expiration_days: int = 7):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = timedelta(days=expiration_days)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokenService":
        return cls(settings.SECRET_KEY, settings.JWT_ALGORITHM, settings.JWT_EXPIRATION_DAYS)

    def issue(self, user: User) -> str:
        ensure_can_hold_session(user)
        now = utcnow()
        payload = {
            "sub": str(user.id),
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "iat": now,
            "exp": now + self.expires_delta,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidSessionError("Session expired, please log in again")
        except JWTError:
            raise InvalidSessionError()

        if not str(payload.get("sub", "")).isdigit():
            raise InvalidSessionError()
        return payload


def resolve_session(repo: UserRepository, tokens: SessionTokenService, token: str) -> VerifiedSession:
    """Turn a bearer token into the verified caller.

    The user is re-read on every request so deletions, blocks and role
    changes take effect before the token expires.
    """
    payload = tokens.decode(token)
    user = repo.get_by_id(int(payload["sub"]))
    if user is None:
        raise InvalidSessionError()
    ensure_can_hold_session(user)
    return VerifiedSession(user_id=user.id, email=user.email, name=user.name, role=user.role)


# --- Use cases ---

def get_user_by_email(repo: UserRepository, email: str) -> Optional[User]:
    return repo.get_by_email(normalize_email(email))


def create_user(
    repo: UserRepository,
    name: str,
    email: str,
    password: str,
    role: Role = Role.USER,
    email_verified: bool = False,
    verification_ttl_hours: Optional[int] = None,
) -> tuple[User, Optional[str]]:
    """Insert a user (flush only). Returns the user and its verification token, if one was issued."""
    token, expires = (None, None)
    if not email_verified and verification_ttl_hours is not None:
        token, expires = issue_verification_token(verification_ttl_hours)

    user = repo.create({
        "name": name.strip(),
        "email": normalize_email(email),
        "password_hash": hash_password(password),
        "role": role.value,
        "email_verified": email_verified,
        "is_blocked": False,
        "verification_token": token,
        "verification_expires": expires,
    })
    return user, token


def register_user(repo: UserRepository, notifier, body: RegisterRequest, settings: Settings) -> User:
    """Create an unverified account and send its verification link. No session is issued."""
    if get_user_by_email(repo, body.email):
        raise EmailAlreadyRegisteredError()

    try:
        with repo.transaction():
            user, token = create_user(
                repo,
                name=body.name,
                email=body.email,
                password=body.password,
                verification_ttl_hours=settings.VERIFICATION_TOKEN_TTL_HOURS,
            )
    except IntegrityError:
        # Lost a race with a concurrent sign-up for the same address
        raise EmailAlreadyRegisteredError()

    logger.info("user_registered", user_id=user.id, email=user.email)
    notifier.send_verification(Recipient.model_validate(user), token)
    return user


def verify_email(repo: UserRepository, token: str) -> VerificationResult:
    user = repo.get_by_verification_token(token)

    if user is None:
        # A replay of the token that already verified the account
        if repo.get_by_consumed_token_digest(token_digest(token)) is not None:
            return VerificationResult.ALREADY_VERIFIED
        raise TokenNotFoundError()

    if user.verification_expires is not None and utcnow() > as_utc(user.verification_expires):
        logger.info("verification_token_expired", user_id=user.id)
        raise TokenExpiredError()

    if user.email_verified:
        return VerificationResult.ALREADY_VERIFIED

    with repo.transaction():
        repo.update(user, {
            "email_verified": True,
            "verification_token": None,
            "verification_expires": None,
            "consumed_token_digest": token_digest(token),
        })

    logger.info("email_verified", user_id=user.id)
    return VerificationResult.VERIFIED


def resend_verification(repo: UserRepository, notifier, email: str, settings: Settings) -> None:
    """Issue a new verification token. Unknown addresses are ignored silently."""
    user = get_user_by_email(repo, email)
    if user is None:
        logger.info("verification_resend_unknown_email")
        return

    if user.email_verified:
        raise EmailAlreadyVerifiedError()

    token, expires = issue_verification_token(settings.VERIFICATION_TOKEN_TTL_HOURS)
    with repo.transaction():
        repo.update(user, {"verification_token": token, "verification_expires": expires})

    logger.info("verification_token_reissued", user_id=user.id)
    notifier.send_verification(Recipient.model_validate(user), token)


def authenticate_user(repo: UserRepository, email: str, password: str) -> User:
    user = get_user_by_email(repo, email)
    # Same error for unknown email and wrong password
    if user is None or not verify_password(password, user.password_hash):
        logger.info("login_failed")
        raise InvalidCredentialsError()
    ensure_can_hold_session(user)
    return user


def login(repo: UserRepository, tokens: SessionTokenService, email: str, password: str) -> tuple[str, User]:
    user = authenticate_user(repo, email, password)
    token = tokens.issue(user)
    logger.info("login_succeeded", user_id=user.id)
    return token, user


def seed_admin(repo: UserRepository, settings: Settings) -> Optional[User]:
    """Create the default admin account (pre-verified) if it does not exist."""
    if get_user_by_email(repo, settings.ADMIN_EMAIL):
        return None

    with repo.transaction():
        admin, _ = create_user(
            repo,
            name=settings.ADMIN_NAME,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            role=Role.ADMIN,
            email_verified=True,
        )
    logger.info("Default admin user created", email=admin.email)
    return admin
