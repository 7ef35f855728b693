"""
Payload Pulverizer — Application Configuration
================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a default `settings` object.
Who:   Imported by the app factory, the CLI and the counter store.
When:  Loaded once at module import time; the CLI may build an override.

Design Decision:
    The default `settings` instance is only a default. create_app() accepts
    an explicit Settings object so the CLI (--db-path) and the test suite
    can run the service against their own database file without touching
    process-wide state.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


DEFAULT_DB_PATH = "/tmp/payload-pulverizer.db"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for running the container image
    as-is. Attributes are grouped by concern for readability.
    """

    # ── Counter Store ─────────────────────────────────────────────────────
    # What: Filesystem path of the single-file SQLite counter store
    # Same value as the CLI flag --db-path
    db_path: str = Field(
        default=DEFAULT_DB_PATH,
        description="Path to the SQLite database file holding endpoint counters",
    )

    # What: Seconds a writer waits for SQLite's write lock before failing
    # Concurrent increments wait on the lock instead of raising "database is locked"
    db_busy_timeout: float = Field(default=30.0, gt=0, le=600)

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL for the configured database file."""
        return f"sqlite+aiosqlite:///{self.db_path}"

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated origins, "*" allows any
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Payload Limits ────────────────────────────────────────────────────
    # What: Largest request body any endpoint accepts (250 MiB)
    # Enforced on the received body stream by BodySizeLimitMiddleware
    max_payload_bytes: int = Field(default=250 * 1024 * 1024, ge=1)

    # What: Largest payload /validate-before-destroy will inspect (64 KiB)
    # Validation parses the payload up to three times
    validate_max_bytes: int = Field(default=64 * 1024, ge=1)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Default instance; create_app() falls back to it when none is given
settings = Settings()
