from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Core
    ENVIRONMENT: str = Field(default="production")
    FIRESTORE_PROJECT_ID: str = Field(default="")
    FIRESTORE_DATABASE: str = Field(default="")  # empty = "(default)"
    APP_BASE_URL: str = Field(default="")  # public app URL, used for unsubscribe links

    # Operator/admin auth (Google OIDC ID token)
    OPERATOR_AUTH_AUDIENCE: str = Field(default="")
    OPERATOR_INVOKER_SUBS: str = Field(default="")  # comma-separated
    OPERATOR_INVOKER_EMAILS: str = Field(default="")  # comma-separated

    # Mail transport
    MAIL_API_URL: str = Field(default="")
    MAIL_API_TOKEN: str = Field(default="")
    MAIL_FROM_ADDRESS: str = Field(default="notifications@example.com")
    MAIL_FROM_NAME: str = Field(default="Docs")
    MAIL_TIMEOUT_S: float = Field(default=20.0)

    # Notification processing
    NOTIFICATIONS_ENABLED: bool = Field(default=True)
    SUPPRESSION_CHECK_WORKERS: int = Field(default=4)
    EVENT_PROCESSING_TIMEOUT_S: float = Field(default=60.0)
    MAX_SUBSCRIBERS_PER_EVENT: int = Field(default=5000)


settings = Settings()
