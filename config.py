"""Configuration management for short links."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    """Application configuration."""

    # Store settings
    store_url: str = Field(
        default="redis://localhost:6379/0",
        description="Link store URL: redis://host:port/db, or memory:// for a single-process store"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8000,
        description="Port to listen on"
    )

    workers: int = Field(
        default=1,
        ge=1,
        description="Number of uvicorn worker processes. Requires a shared store (redis://) when > 1."
    )

    base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL for displaying short links when the request carries no host"
    )

    # Short code settings
    short_code_length: int = Field(
        default=12,
        ge=4,
        le=40,
        description="Length of generated short codes"
    )

    max_collision_retries: int = Field(
        default=5,
        ge=1,
        description="Maximum attempts when a generated short code is already taken"
    )

    # GitHub OAuth settings
    github_client_id: str = Field(
        default="",
        description="GitHub OAuth app client id"
    )

    github_client_secret: str = Field(
        default="",
        description="GitHub OAuth app client secret"
    )

    github_redirect_uri: Optional[str] = Field(
        default=None,
        description="OAuth callback URL registered with GitHub (e.g., https://example.com/oauth/callback)"
    )

    # Session settings
    session_cookie_name: str = Field(
        default="session",
        description="Cookie carrying the session id"
    )

    session_ttl_seconds: int = Field(
        default=7 * 24 * 3600,
        description="Lifetime of a signed-in session"
    )

    cookie_secure: bool = Field(
        default=False,
        description="Mark session cookies Secure (enable behind HTTPS)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
