from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Postgres connection string
    DATABASE_URL: str = "postgresql://localhost:5432/circle_hours"

    # Admin API token verification
    JWT_SECRET: str | None = None
    JWT_ALGORITHM: str = "HS256"

    # Telegram Bot API (notification transport)
    TELEGRAM_BOT_TOKEN: str | None = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0

    # Public URL used to build one-time login links
    BACKEND_URL: str = "http://localhost:8000"
    ONE_TIME_TOKEN_TTL_DAYS: int = 7

    # =================================================================
    # TRACKING RULES
    # =================================================================
    TRACKING_TIMEZONE: str = "Europe/Madrid"
    WEEKLY_TARGET_HOURS: float = 2.0
    REMINDER_COOLDOWN_DAYS: int = 7
    REMINDER_DAY_OF_WEEK: str = "mon"
    REMINDER_HOUR: int = 7
    REMINDER_MINUTE: int = 0
    REMINDER_RUN_STALE_MINUTES: int = 30
    DASHBOARD_RECENT_ENTRIES: int = 10

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def tracking_tz(self) -> ZoneInfo:
        """Fixed timezone every week and month boundary is computed in."""
        return ZoneInfo(self.TRACKING_TIMEZONE)

    def login_url(self, token: str) -> str:
        base = self.BACKEND_URL.rstrip("/")
        return f"{base}/api/v1/auth/one-time/{token}"

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            config.update(
                {
                    "min_size": 1,
                    "max_size": 4,
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
