"""Application settings and configuration.

This module defines all configuration options for the Lunavo Signal service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Lunavo Signal", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./lunavo.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Escalation detection
    escalation_rules_path: str | None = Field(default=None, alias="ESCALATION_RULES_PATH")
    escalation_confidence_threshold: float = Field(
        default=0.5,
        alias="ESCALATION_CONFIDENCE_THRESHOLD",
    )
    escalation_report_threshold: int = Field(default=3, alias="ESCALATION_REPORT_THRESHOLD")

    # Push delivery (Expo push service)
    push_enabled: bool = Field(default=True, alias="PUSH_ENABLED")
    push_api_url: str = Field(
        default="https://exp.host/--/api/v2/push/send",
        alias="PUSH_API_URL",
    )
    push_access_token: str | None = Field(default=None, alias="PUSH_ACCESS_TOKEN")
    push_http_timeout_seconds: float = Field(default=10.0, alias="PUSH_HTTP_TIMEOUT_SECONDS")

    # Scheduled delivery sweep
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    scheduler_sweep_interval_seconds: float = Field(
        default=30.0,
        alias="SCHEDULER_SWEEP_INTERVAL_SECONDS",
    )
    scheduler_batch_size: int = Field(default=50, alias="SCHEDULER_BATCH_SIZE")
    scheduler_max_attempts: int = Field(default=5, alias="SCHEDULER_MAX_ATTEMPTS")

    # Notification preference defaults for users without a stored row
    default_quiet_hours_enabled: bool = Field(default=True, alias="DEFAULT_QUIET_HOURS_ENABLED")
    default_quiet_hours_start: int = Field(default=22, ge=0, le=23, alias="DEFAULT_QUIET_HOURS_START")
    default_quiet_hours_end: int = Field(default=7, ge=0, le=23, alias="DEFAULT_QUIET_HOURS_END")
    default_priority_threshold: str = Field(default="normal", alias="DEFAULT_PRIORITY_THRESHOLD")
    default_digest_interval: str = Field(default="daily", alias="DEFAULT_DIGEST_INTERVAL")
    default_timezone: str = Field(default="UTC", alias="DEFAULT_TIMEZONE")

    # Failure log sink
    failure_log_capacity: int = Field(default=500, alias="FAILURE_LOG_CAPACITY")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
