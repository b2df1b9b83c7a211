"""
Client configuration.

Values come from environment variables prefixed with ``CREWVAR_`` or an
optional .env file, e.g. ``CREWVAR_API_BASE_URL``.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for the device-side client."""

    model_config = SettingsConfigDict(
        env_prefix="CREWVAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend
    api_base_url: str = "http://localhost:8000/api/v1/"
    http_timeout_seconds: float = 10.0

    # Device storage
    storage_path: str = "~/.crewvar/preferences.json"
    # Key for the stored-session integrity tag. Empty means a random key is
    # generated on first use and kept in device preferences.
    integrity_key: SecretStr = SecretStr("")

    # Session lifetimes
    max_session_age_days: int = Field(default=30, ge=1)
    token_lifetime_seconds: int = 3600
    token_refresh_margin_seconds: int = 300
    loading_timeout_seconds: float = 15.0

    # Feature flags
    email_verification_enabled: bool = False
    oauth_enabled: bool = False
    native_session_persistence: bool = True
