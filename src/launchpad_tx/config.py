"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    public_base_url: str = "http://localhost:8000"
    session_ttl_minutes: int = 30
    rpc_timeout_seconds: float = 15
    require_wallet_signature: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def build_signing_url(base_url: str, path: str) -> str:
    """Join the public base URL with a signing page path."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
