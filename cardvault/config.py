"""Social Card Vault configuration module.

Loads all environment variables with type validation using pydantic-settings.
Fails fast with clear error messages on invalid values.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Metrics provider (X API v2) ──
    x_bearer_token: str = Field(
        default="",
        description="X API v2 app bearer token for live metric fetches",
    )
    x_api_base: str = Field(
        default="https://api.twitter.com/2",
        description="Base URL of the X API v2",
    )
    metrics_mode: str = Field(
        default="auto",
        description="mock, live, or auto (live when a bearer token is set)",
    )
    metrics_timeout_s: float = Field(
        default=15.0,
        description="HTTP timeout for metric provider calls in seconds",
        gt=0,
    )

    # ── Cards ──
    assets_dir: str = Field(
        default="data/cards",
        description="Directory where rendered PNG/PDF cards are written",
    )
    public_base_url: str = Field(
        default="http://localhost:8040",
        description="Public base URL used to build card links",
    )

    # ── Leaderboard ──
    leaderboard_default_days: int = Field(default=7, ge=1, le=366)
    leaderboard_default_limit: int = Field(default=24, ge=1)
    leaderboard_max_limit: int = Field(default=100, ge=1)

    # ── General ──
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins for the API",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    db_path: str = Field(
        default="data/cardvault.db",
        description="Path to SQLite database file",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got '{v}'")
        return upper

    @field_validator("metrics_mode")
    @classmethod
    def validate_metrics_mode(cls, v: str) -> str:
        """Ensure metrics mode is recognized."""
        allowed = {"mock", "live", "auto"}
        lower = v.lower()
        if lower not in allowed:
            raise ValueError(f"metrics_mode must be one of {allowed}, got '{v}'")
        return lower

    @property
    def db_path_resolved(self) -> Path:
        """Return resolved Path object for the database."""
        return Path(self.db_path)

    @property
    def assets_dir_resolved(self) -> Path:
        """Return Path object for the card asset directory."""
        return Path(self.assets_dir)

    def has_x_token(self) -> bool:
        """Check if an X API bearer token is configured."""
        return bool(self.x_bearer_token and self.x_bearer_token != "AAAA...")

    def use_live_metrics(self) -> bool:
        """Whether captures should hit the live provider."""
        if self.metrics_mode == "live":
            return True
        if self.metrics_mode == "mock":
            return False
        return self.has_x_token()


def get_settings(**overrides: object) -> Settings:
    """Create a Settings instance with optional overrides.

    Args:
        **overrides: Key-value pairs to override env/defaults.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If any value fails validation.
    """
    return Settings(**overrides)
