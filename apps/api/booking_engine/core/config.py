"""Application configuration with environment variables."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./booking.db"
    # Seconds a writer waits for the ledger lock before failing
    DB_LOCK_TIMEOUT_SECONDS: float = 10.0

    # Business timezone (dates and times of appointments are local to it)
    BUSINESS_TIMEZONE: str = "America/New_York"
    BUSINESS_NAME: str = "Lashed By Anna"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Internal scheduled endpoints (cron jobs)
    INTERNAL_SECRET: str = ""  # Secret for /internal/scheduled/* endpoints

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"

    # Reminder worker
    REMINDER_POLL_INTERVAL_SECONDS: int = 900  # 15 minutes

    # Booking policy defaults (seed the business_settings row on first use)
    DEFAULT_CANCELLATION_WINDOW_HOURS: int = 48
    DEFAULT_CANCELLATION_FEE: Decimal = Decimal("35.00")
    DEFAULT_BUFFER_MINUTES: int = 15
    DEFAULT_SLOT_GRANULARITY_MINUTES: int = 30
    DEFAULT_MINIMUM_LEAD_MINUTES: int = 0
    DEFAULT_REMINDER_HOURS: int = 24
    DEFAULT_AUTO_CONFIRM_BOOKINGS: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
