from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    DATABASE_URL: str = "postgresql+asyncpg://teamops:teamops_secret@db:5432/teamops"
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # IANA zone used for "today", week boundaries and per-day buckets
    TIMEZONE: str = "UTC"
    # Python weekday numbering: Monday=0 ... Sunday=6
    WEEK_START_DAY: int = Field(6, ge=0, le=6)
    STANDARD_WORKDAY_HOURS: float = 8.0
    PUNCH_FETCH_TIMEOUT_SEC: float = 10.0

    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "admin123"


settings = Settings()
