# ─────────────────────────────────────────────────────────────────
# config.py - Application Settings
#
# Every tunable value (database URL, third-party API keys, scheduler
# timing) is read here from environment variables or a local .env
# file. Other modules import `settings` and never call os.getenv.
# ─────────────────────────────────────────────────────────────────

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field(default="sqlite:///./agrogo.db", validation_alias="DATABASE_URL")

    # Identity provider (Firebase accounts:lookup REST endpoint)
    firebase_api_key: Optional[str] = Field(default=None, validation_alias="FIREBASE_API_KEY")
    identity_lookup_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1/accounts:lookup",
        validation_alias="IDENTITY_LOOKUP_URL",
    )

    # Outbound email (Resend REST API)
    resend_api_key: Optional[str] = Field(default=None, validation_alias="RESEND_API_KEY")
    email_api_url: str = Field(default="https://api.resend.com/emails", validation_alias="EMAIL_API_URL")
    default_sender: str = Field(default="no-reply@agrogo.org", validation_alias="DEFAULT_SENDER")
    alert_sender: str = Field(default="alerts@agrogo.org", validation_alias="ALERT_SENDER")

    # Scheduled alert distribution
    email_distribution_interval: float = Field(default=60.0, validation_alias="EMAIL_DISTRIBUTION_INTERVAL")
    email_batch_size: int = Field(default=50, validation_alias="EMAIL_BATCH_SIZE")
    email_send_delay: float = Field(
        default=1.0,
        validation_alias="EMAIL_SEND_DELAY",
        description="Seconds to wait between two sends so the provider does not flag us as spam.",
    )
    enable_email_scheduler: bool = Field(default=True, validation_alias="ENABLE_EMAIL_SCHEDULER")

    http_timeout: float = Field(default=10.0, validation_alias="HTTP_TIMEOUT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()
