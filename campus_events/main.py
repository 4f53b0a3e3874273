"""FastAPI application — main entry point."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI

from campus_events.application.services.auth_service import SessionTokenService, seed_admin
from campus_events.application.services.notification_service import Notifier
from campus_events.config import Settings, get_settings
from campus_events.core.exceptions import register_exception_handlers
from campus_events.core.logging import configure_logging
from campus_events.core.middleware import setup_middleware
from campus_events.infrastructure.database import Database
from campus_events.infrastructure.mailer import SMTPMailer
from campus_events.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

# Import routers
from campus_events.interfaces.api.admin import router as admin_router
from campus_events.interfaces.api.auth import router as auth_router
from campus_events.interfaces.api.events import router as events_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting Campus Events API...", env=settings.ENVIRONMENT)

    # Create DB tables (use migrations in production)
    app.state.db.create_all()
    logger.info("Database tables created/verified")

    if settings.SEED_ADMIN:
        db = app.state.db.session()
        try:
            seed_admin(SQLAlchemyUserRepository(db), settings)
        finally:
            db.close()

    yield

    app.state.db.dispose()
    logger.info("Campus Events API stopped")


def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application with its process-wide services on app.state."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Campus Events API",
        description="University event registration with verified accounts and capacity-safe sign-ups",
        version="1.0.0",
        lifespan=lifespan,
    )

    mailer = SMTPMailer.from_settings(settings)
    app.state.settings = settings
    app.state.db = Database(settings.sqlalchemy_url)
    app.state.tokens = SessionTokenService.from_settings(settings)
    app.state.mailer = mailer
    app.state.notifier = Notifier(mailer, settings.FRONTEND_URL, settings.VERIFICATION_TOKEN_TTL_HOURS)

    # Correlation ID, request logging, CORS
    setup_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(events_router)
    app.include_router(admin_router)

    app.add_api_route("/health", health, methods=["GET"], tags=["Health"])
    app.add_api_route("/api/health", health, methods=["GET"], tags=["Health"])

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
