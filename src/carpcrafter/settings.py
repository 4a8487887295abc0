"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the CarpCrafter API server.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared
    log_level: str = "INFO"

    # REST API
    api_server_host: str = "localhost"
    api_server_port: int = 8000
    port: int | None = None  # Cloud Run injects PORT; takes precedence over api_server_port

    @property
    def effective_port(self) -> int:
        """Return the port to listen on (Cloud Run PORT takes precedence)."""
        return self.port if self.port is not None else self.api_server_port

    # Generation backend
    gemini_api_key: str = ""
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    concept_model: str = "gemini-2.5-flash"
    visual_model: str = "gemini-2.5-flash-image"
    thinking_budget: int = 4096
    request_timeout: float = 120.0

    # Gallery storage
    storage_dir: Path = Path(".carpcrafter")
    storage_quota_bytes: int = 5 * 1024 * 1024  # same budget as browser localStorage
    storage_key: str = "carp_crafter_inventions"

    # Weather
    weather_base_url: str = "https://api.open-meteo.com/v1"
