"""Auth API routes — register, email verification, login, profile."""

from fastapi import APIRouter, Depends, status

from campus_events.application.services import auth_service
from campus_events.application.services.auth_service import SessionTokenService, VerificationResult
from campus_events.application.services.notification_service import BackgroundNotifier
from campus_events.config import Settings
from campus_events.core.exceptions import UserNotFoundError
from campus_events.domain.repositories.user_repository import UserRepository
from campus_events.domain.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    SessionUser,
    TokenResponse,
    UserRead,
    VerifiedSession,
    VerifyEmailResponse,
)
from campus_events.domain.schemas.base import MessageResponse
from campus_events.interfaces.api.deps import get_current_session
from campus_events.interfaces.deps import get_app_settings, get_notifier, get_token_service, get_user_repository

router = APIRouter(prefix="/api/auth", tags=["Auth"])

RESEND_MESSAGE = "If an account exists with this email, a verification link will be sent."


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    repo: UserRepository = Depends(get_user_repository),
    notifier: BackgroundNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    user = auth_service.register_user(repo, notifier, body, settings)
    return RegisterResponse(
        message="Registration successful! Please check your email to verify your account.",
        email=user.email,
    )


@router.get("/verify-email/{token}", response_model=VerifyEmailResponse)
def verify_email(token: str, repo: UserRepository = Depends(get_user_repository)):
    result = auth_service.verify_email(repo, token)
    if result is VerificationResult.ALREADY_VERIFIED:
        return VerifyEmailResponse(message="Email already verified. You can login now.", already_verified=True)
    return VerifyEmailResponse(message="Email verified successfully! You can now login.", verified=True)


@router.post("/resend-verification", response_model=MessageResponse)
def resend_verification(
    body: ResendVerificationRequest,
    repo: UserRepository = Depends(get_user_repository),
    notifier: BackgroundNotifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
):
    auth_service.resend_verification(repo, notifier, body.email, settings)
    return MessageResponse(message=RESEND_MESSAGE)


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    repo: UserRepository = Depends(get_user_repository),
    tokens: SessionTokenService = Depends(get_token_service),
):
    token, user = auth_service.login(repo, tokens, body.email, body.password)
    return TokenResponse(token=token, user=SessionUser.model_validate(user))


@router.get("/profile", response_model=UserRead)
def get_profile(
    session: VerifiedSession = Depends(get_current_session),
    repo: UserRepository = Depends(get_user_repository),
):
    user = repo.get_by_id(session.user_id)
    if not user:
        raise UserNotFoundError()
    return UserRead.model_validate(user)
