"""Application configuration for the video sample backend."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_CREDENTIALS = (
    "twilio_account_sid",
    "twilio_api_key",
    "twilio_api_secret",
    "twilio_auth_token",
)


class ConfigurationError(RuntimeError):
    """Raised when the Twilio credentials needed by the backend are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        names = ", ".join(name.upper() for name in missing)
        super().__init__(f"Missing configuration: {names}")


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    twilio_account_sid: str = Field(default="")
    twilio_api_key: str = Field(default="")
    twilio_api_secret: str = Field(default="")
    twilio_auth_token: str = Field(default="")

    public_base_url: str = Field(default="http://localhost:8000")
    composition_media_ttl: int = Field(default=3600, ge=1)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        """Allow comma-separated env values for CORS origins."""

        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    def missing_credentials(self) -> list[str]:
        return [name for name in REQUIRED_CREDENTIALS if not getattr(self, name).strip()]

    def require_credentials(self) -> None:
        """Fail fast instead of letting Twilio reject an unauthenticated call."""

        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(missing)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
