import logging
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings
    """

    # === DATABASE CONFIGURATION ===
    # The datasource is wired by hand in core.db.build_engine; nothing is
    # connected at import time.
    DATABASE_URL: str = Field(
        default="sqlite:///./data/walkin.db",
        description="SQLAlchemy database URL"
    )
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1, le=20)
    DATABASE_ECHO: bool = Field(default=False)
    DATABASE_CONNECT_RETRIES: int = Field(default=3, ge=1, le=10)
    SEED_DEFAULT_OFFICES: bool = Field(
        default=True,
        description="Create the default offices on startup when none exist"
    )

    # === LOGGING CONFIGURATION ===
    LOG_LEVEL: str = Field(default="INFO")

    # === SERVER CONFIGURATION ===
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000, ge=1, le=65535)

    # === API CONFIGURATION ===
    API_TITLE: str = Field(default="WALKIN API")
    API_VERSION: str = Field(default="1.0.0")
    API_DESCRIPTION: str = Field(
        default="GPS-based attendance tracking with exception approvals"
    )

    # === AUTH CONFIGURATION ===
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        min_length=1,
        description="HS256 signing key for access tokens"
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=720, ge=5)
    ADMIN_EMAILS: list[str] | str = Field(
        default=[],
        description="Emails that receive the admin role on signup"
    )

    # === ATTENDANCE POLICY ===
    TIMEZONE: str = Field(default="Asia/Seoul")
    LATE_THRESHOLD: time = Field(
        default=time(9, 5),
        description="Check-ins at or after this local time are late"
    )
    WORK_END_HOUR: int = Field(
        default=18, ge=0, le=23,
        description="Check-outs before this local hour are early"
    )
    HISTORY_MONTHS: int = Field(default=3, ge=0, le=24)
    HISTORY_LIMIT: int = Field(default=100, ge=1, le=1000)
    APPROVAL_REASON_MIN_LENGTH: int = Field(default=10, ge=1)

    # === GPS CONFIGURATION ===
    OFFICE_LAT: float = Field(default=37.5665, ge=-90, le=90)
    OFFICE_LNG: float = Field(default=126.9780, ge=-180, le=180)
    CHECK_IN_RADIUS: float = Field(default=1000, gt=0, description="meters")
    CHECK_OUT_RADIUS: float = Field(default=3000, gt=0, description="meters")
    MAX_ACCURACY: float = Field(default=50, gt=0, description="meters")

    # === LIVE UPDATES ===
    STREAM_QUEUE_SIZE: int = Field(default=32, ge=1, le=1024)
    STREAM_KEEPALIVE_SECONDS: float = Field(default=15.0, gt=0)

    # === SECURITY ===
    ALLOWED_ORIGINS: list[str] | str = Field(
        default=["http://localhost:8501", "http://frontend:8501"],
        description="CORS allowed origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=True,
        env_delimiter=",")

    @field_validator("SECRET_KEY", mode="after")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Ensure the signing key is not whitespace-only"""
        if not v.strip():
            raise ValueError("SECRET_KEY cannot be empty or whitespace-only")
        return v.strip()

    @field_validator("LOG_LEVEL", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure valid log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("TIMEZONE", mode="after")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def normalize_allowed_origins(cls, v):
        """Allow comma-separated env var values for CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("ADMIN_EMAILS", mode="before")
    @classmethod
    def normalize_admin_emails(cls, v):
        """Accept a comma-separated list; emails compare lowercased."""
        if isinstance(v, str):
            v = v.split(",")
        return [email.strip().lower() for email in v if email and email.strip()]

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)


def get_settings() -> Settings:
    """Factory function to load and validate settings"""
    try:
        settings = Settings()
        logger.info("✓ Configuration loaded and validated successfully")
        logger.debug(f"Database: {settings.DATABASE_URL}")
        logger.debug(f"Log Level: {settings.LOG_LEVEL}")
        return settings
    except Exception as e:
        logger.critical(f"FATAL: Configuration validation failed: {e}")
        raise SystemExit(f"Configuration Error: {e}")


try:
    settings = get_settings()
except SystemExit:
    raise
