"""
Runtime Config Store
====================

Holds the backend coordinates (base URL, application ID, subscription key and
version ID) that every proxied request is built from.

Update Model:
-------------
- The store is seeded once from the environment-derived defaults.
- POST /config replaces url/appId/appKey wholesale: a supplied, non-empty
  value wins, anything omitted or empty falls back to the default (not to
  the previously active value).
- versionId is fixed for the lifetime of the process.

Snapshots are immutable. An update builds the new snapshot first and swaps
it in with a single assignment, so handlers that read the store once per
request never see a mix of old and new fields.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .config import Settings

logger = logging.getLogger("luis_proxy.store")


class LuisConfig(BaseModel):
    """Immutable snapshot of the active backend configuration."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(..., description="Backend base URL")
    app_id: str = Field(..., description="LUIS application ID")
    app_key: SecretStr = Field(..., description="LUIS subscription key")
    version_id: str = Field(..., description="Application version ID")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LuisConfig":
        return cls(
            base_url=settings.LUIS_SERVER_URL,
            app_id=settings.LUIS_APP_ID,
            app_key=SecretStr(settings.LUIS_APP_KEY),
            version_id=settings.LUIS_VERSION_ID,
        )


class ConfigUpdate(BaseModel):
    """
    Payload accepted by POST /config.

    Values of any JSON type are accepted and coerced to strings; the endpoint
    never rejects a body.
    """

    model_config = ConfigDict(extra="ignore")

    url: Optional[Any] = Field(None, description="New backend base URL")
    appId: Optional[Any] = Field(None, description="New application ID")
    appKey: Optional[Any] = Field(None, description="New subscription key")

    @classmethod
    def from_body(cls, body: Any) -> "ConfigUpdate":
        """Build an update from a decoded JSON body, treating non-objects as empty."""
        if not isinstance(body, dict):
            return cls()
        return cls.model_validate(body)


def _pick(value: Any, default: str) -> str:
    # Falsy values (None, "", 0, False) reset to the default
    if not value:
        return default
    return str(value)


class ConfigStore:
    """
    Process-wide holder of the active LuisConfig.

    Owned by the application state and handed to route handlers through a
    FastAPI dependency.
    """

    def __init__(self, defaults: Optional[LuisConfig] = None):
        self._defaults: Optional[LuisConfig] = None
        self._current: Optional[LuisConfig] = None
        if defaults is not None:
            self.initialize(defaults)

    def initialize(self, defaults: LuisConfig) -> None:
        """
        Set the active config and the reset targets to ``defaults``.

        Args:
            defaults: Environment-derived configuration
        """
        self._defaults = defaults
        self._current = defaults
        logger.info(
            "Config store initialized",
            extra={
                "base_url": defaults.base_url,
                "app_id": defaults.app_id,
                "version_id": defaults.version_id,
            }
        )

    @property
    def defaults(self) -> LuisConfig:
        if self._defaults is None:
            raise RuntimeError("Config store has not been initialized")
        return self._defaults

    def read(self) -> LuisConfig:
        """Return the current snapshot."""
        if self._current is None:
            raise RuntimeError("Config store has not been initialized")
        return self._current

    def update(self, partial: ConfigUpdate) -> LuisConfig:
        """
        Replace url/appId/appKey, resetting omitted or empty fields to defaults.

        Args:
            partial: Fields supplied by the caller

        Returns:
            The snapshot now active
        """
        defaults = self.defaults
        updated = LuisConfig(
            base_url=_pick(partial.url, defaults.base_url),
            app_id=_pick(partial.appId, defaults.app_id),
            app_key=SecretStr(
                _pick(partial.appKey, defaults.app_key.get_secret_value())
            ),
            version_id=defaults.version_id,
        )
        self._current = updated

        logger.info(
            "Config updated",
            extra={
                "base_url": updated.base_url,
                "app_id": updated.app_id,
                "app_key_supplied": bool(partial.appKey),
            }
        )
        return updated
