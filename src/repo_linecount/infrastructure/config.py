"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from repo_linecount.domain.entities import FailurePolicy


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: SecretStr | None = None
    # Fixed fan-out for blob fetches, never derived from the CPU count.
    concurrency: int = Field(default=32, ge=1)
    failure_policy: FailurePolicy = FailurePolicy.SKIP
    ordered_output: bool = False
    http_timeout_seconds: float = 30.0
    treat_doc_strings_as_comments: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
