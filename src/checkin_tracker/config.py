"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    supabase_anon_key: str | None = None
    admin_emails: str | None = None
    ip_lookup_url: str = "https://api.ipify.org?format=json"
    history_limit: int = 10
    export_filename_prefix: str = "checkin-contacts"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_admin_emails(raw: str | None) -> set[str] | None:
    """Parse the admin email allowlist from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    emails: set[str] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip().lower()
        if value and "@" in value:
            emails.add(value)
    return emails or None
