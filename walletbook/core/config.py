from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="WALLETBOOK_", env_file=".env", extra="ignore")

    # Any SQLAlchemy URL. SQLite works out of the box; point it at Postgres in production.
    database_url: str = "sqlite:///./walletbook.db"
    database_echo: bool = False
    # Create missing tables at startup. Disable when the schema is managed by Alembic.
    auto_create_tables: bool = True

    jwt_secret: str = "change-me"
    jwt_expire_minutes: int = 60 * 24 * 7

    # Session is persisted as an HttpOnly cookie and restored via /api/auth/session.
    auth_cookie_name: str = "walletbook_auth"
    auth_cookie_samesite: str = "lax"  # lax|strict|none
    auth_cookie_secure: bool = False

    # Where clients should send users without a live session.
    login_url: str = "/auth/login"

    bcrypt_rounds: int = 12

    # Used for "current month" when a user has no time zone set.
    default_time_zone: str = "UTC"

    cors_origins: str = "http://localhost:8081,http://127.0.0.1:8081,http://localhost:19006"

    log_level: str = "INFO"


settings = Settings()
