"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./labx.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # External calendar (Google Calendar v3 REST contract)
    CALENDAR_API_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
    CALENDAR_ID: str = "primary"
    CALENDAR_TIMEZONE: str = "Asia/Singapore"  # IANA tz
    CALENDAR_HTTP_TIMEOUT_SECONDS: float = 10.0

    CONSULTATION_DURATION_MINUTES: int = 30

    # Sign-up email rules
    STAFF_EMAIL_DOMAIN: str = "sst.edu.sg"
    STUDENT_EMAIL_PATTERN: str = r"^.+@s20\d{2}\.ssts\.edu\.sg$"

    class Config:
        env_file = ".env"


settings = Settings()
