"""Campus Events — Configuration via pydantic-settings."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./campus_events.db"

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_DAYS: int = 7
    VERIFICATION_TOKEN_TTL_HOURS: int = 24

    # Frontend (verification links, CORS)
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: list[str] = []

    # SMTP
    SMTP_HOST: str = "sandbox.smtp.mailtrap.io"
    SMTP_PORT: int = 2525
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: int = 30
    MAIL_SENDER_NAME: str = "Campus Events"
    MAIL_SENDER_EMAIL: str = "no-reply@campus-events.local"
    MAIL_ENABLED: bool = True

    # Default admin account, created at startup when missing
    SEED_ADMIN: bool = True
    ADMIN_EMAIL: str = "admin@admin.com"
    ADMIN_PASSWORD: str = "admin"
    ADMIN_NAME: str = "Administrator"

    # Server
    PORT: int = 3000

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def sqlalchemy_url(self) -> str:
        # Heroku/Azure style URLs use the legacy scheme SQLAlchemy rejects
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL


@lru_cache
def get_settings() -> Settings:
    return Settings()
