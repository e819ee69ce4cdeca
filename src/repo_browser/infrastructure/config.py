"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: SecretStr | None = None
    github_api_url: str = "https://api.github.com"
    github_enable_cache: bool = True
    http_timeout_seconds: float = 30.0

    # Cache TTLs in seconds.
    cache_tree_ttl: float = Field(default=30 * 60, gt=0)
    cache_repository_ttl: float = Field(default=15 * 60, gt=0)
    cache_file_by_path_ttl: float = Field(default=5 * 60, gt=0)
    cache_file_by_sha_ttl: float = Field(default=24 * 60 * 60, gt=0)

    # Binary sniffing heuristics.
    binary_sample_chars: int = Field(default=1000, gt=0)
    binary_control_ratio: float = Field(default=0.1, ge=0, le=1)

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    def resolved_token(self) -> str | None:
        if self.github_token is None:
            return None
        return self.github_token.get_secret_value() or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
