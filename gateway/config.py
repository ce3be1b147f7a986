"""
Gateway — Application Configuration
====================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
       A typo in ENVIRONMENT or a zero-length rate window fails at boot,
       not on the first request that needs it.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and get_settings() caches one instance per process.
Who:   Imported by the app factory and every pipeline stage.
When:  Loaded on first get_settings() call; tests build their own instances.

Environment flag:
    ENVIRONMENT=development  → verbose access log, full error detail + stack
    ENVIRONMENT=production   → errors-only access log, generic 500 bodies
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Gateway settings loaded from environment variables.

    All settings have sensible defaults for development.
    Attributes are grouped by concern for readability.
    """

    # ── Application ───────────────────────────────────────────────────────
    app_name: str = Field(default="API Gateway")

    # What: Deployment mode; controls error verbosity and access logging
    environment: str = Field(default="development")

    log_level: str = Field(default="INFO")

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    # ── Client Identity ───────────────────────────────────────────────────
    # What: Honor X-Forwarded-For when resolving the client address
    # Why True: The gateway is deployed behind a reverse proxy; without this
    # every client would share the proxy's address (and its rate limit)
    trust_proxy: bool = Field(default=True)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Fixed-window limit per client: N requests per window
    rate_limit_max: int = Field(default=2000, ge=1)
    rate_limit_window_ms: int = Field(default=60 * 60 * 1000, ge=1)

    # ── Body Parsing ──────────────────────────────────────────────────────
    # What: Largest request body accepted, in bytes (10 kB)
    body_limit_bytes: int = Field(default=10 * 1024, ge=1)

    # ── Sanitization ──────────────────────────────────────────────────────
    # What: Character substituted for '$' and '.' in operator keys.
    # None removes the offending key entirely.
    sanitize_replace_with: Optional[str] = Field(default=None)

    # ── Compression ───────────────────────────────────────────────────────
    # Responses smaller than this are sent uncompressed
    gzip_minimum_size: int = Field(default=1024, ge=0)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated origins; "*" allows any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Only the two modes the error handler knows how to render."""
        lower = v.strip().lower()
        if lower not in {"development", "production"}:
            raise ValueError(
                f"Invalid environment '{v}'. Must be 'development' or 'production'"
            )
        return lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("sanitize_replace_with")
    @classmethod
    def validate_replace_with(cls, v: Optional[str]) -> Optional[str]:
        # A replacement that is itself '$' or '.' would leave the key an operator
        if v is not None and ("$" in v or "." in v):
            raise ValueError("sanitize_replace_with must not contain '$' or '.'")
        return v or None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()

