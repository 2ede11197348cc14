"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

def _clean_str(value: str | None) -> str | None:
    if value is None:
        return None
    # Replace non-breaking spaces with normal spaces
    return value.replace("\u00a0", " ")



class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "SkyDeal"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    DEV_API_TOKEN: str | None = None
    ADMIN_TOKEN: str | None = None

    # Links rendered into e-mails
    FRONTEND_URL: str = "http://localhost:3000"
    API_BASE_URL: str = "http://localhost:8000"

    # Database Settings
    DATABASE_URL: str | None = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "skydeal"
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432

    # Deal detection
    PRICE_HISTORY_WINDOW_DAYS: int = 90
    DEAL_EXPIRY_DAYS: int = 7
    RECENT_FLIGHT_HOURS: int = 24
    DEAL_JOBS_INTERVAL_SECONDS: int = 24 * 60 * 60

    # Notifications / Email
    ENABLE_EMAIL_NOTIFICATIONS: bool = False
    NOTIFICATIONS_BATCH_SIZE: int = 50
    NOTIFICATIONS_POLL_SECONDS: int = 15 * 60
    WEEKLY_DIGEST_MAX_DEALS: int = 5

    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_TIMEOUT_SECONDS: int = 20

    SMTP_USERNAME: str | None = Field(default=None, alias="SMTP_USERNAME")
    SMTP_PASSWORD: str | None = Field(default=None, alias="SMTP_PASSWORD")

    SMTP_USE_TLS: bool = True  # STARTTLS

    SMTP_FROM_EMAIL: str | None = Field(default=None, alias="SMTP_FROM_EMAIL")
    SMTP_FROM_NAME: str = Field(default="SkyDeal", alias="SMTP_FROM_NAME")

    # Billing
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_PREMIUM_PRICE_ID: str | None = None
    STRIPE_PREMIUM_PLUS_PRICE_ID: str | None = None

    @field_validator(
        "SMTP_USERNAME",
        "SMTP_PASSWORD",
        "SMTP_FROM_EMAIL",
        "SMTP_FROM_NAME",
        mode="before",
    )
    @classmethod
    def clean_smtp_strings(cls, v):
        return _clean_str(v)

    @property
    def database_url(self) -> str:
        """Database URL, either given whole or built from components."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
