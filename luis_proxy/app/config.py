"""
Configuration module for the LUIS proxy server.

This module uses Pydantic Settings to load the startup configuration from an
optional .env file and the process environment. The LUIS_* values become the
initial contents of the runtime config store and the targets it resets to
when POST /config omits a field.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Fixed listening port
PORT = 8080

DEFAULT_VERSION_ID = "0.1"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Only the LUIS_* values feed the runtime config store; the rest control
    the server process itself.
    """

    # =========================================================================
    # Backend Defaults
    # =========================================================================

    LUIS_SERVER_URL: str = Field(
        default="",
        description="Base URL of the NLU backend (e.g., https://westus.api.cognitive.microsoft.com/luis/api/v2.0/apps)",
    )

    LUIS_APP_ID: str = Field(
        default="",
        description="Default LUIS application ID",
    )

    LUIS_APP_KEY: str = Field(
        default="",
        description="Default LUIS subscription key (sent as Ocp-Apim-Subscription-Key)",
        repr=False,
    )

    LUIS_VERSION_ID: str = Field(
        default=DEFAULT_VERSION_ID,
        description="Application version used in versioned backend URLs",
        min_length=1,
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    PROXY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the proxy server",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    MAX_BODY_BYTES: int = Field(
        default=50 * 1024 * 1024,
        description="Largest inbound request body accepted, in bytes",
        ge=1,
    )

    BACKEND_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="Outbound request timeout; unset leaves the socket default",
        gt=0,
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that LOG_LEVEL names a standard logging level.

        Raises:
            ValueError: If the level is not recognised
        """
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        level = v.strip().upper()
        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the environment is read only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If an environment variable has an invalid value.
    """
    return Settings()
