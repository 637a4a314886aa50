"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Structured medium (SQLAlchemy asyncio; sqlite:// is rewritten to aiosqlite)
    DATABASE_URL: str = "sqlite+aiosqlite:///./solar_portal.db"
    STRUCTURED_STORE_ENABLED: bool = True

    # Fallback medium: one JSON text file per key
    FALLBACK_STORAGE_DIR: str = ".solar_portal"
    FALLBACK_QUOTA_BYTES: int = 5 * 1024 * 1024  # 0 disables the quota

    STORAGE_KEY_PREFIX: str = "bs_"
    SESSION_MIRROR_KEY: str = "bs_active_session"

    # Collections whose startup read has not finished by then start empty
    STARTUP_GRACE_SECONDS: float = 1.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
