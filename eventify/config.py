"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./eventify.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    TIMEZONE: str = "Europe/Nicosia"  # IANA tz used for "today"
    REMINDER_WINDOW_DAYS: int = 7
    OFFLINE_STORE_PATH: str = "eventify_offline.json"
    REMOTE_API_URL: str = "http://localhost:8000/api"
    REMOTE_TIMEOUT_SECONDS: float = 5.0
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
