"""Engine configuration using pydantic-settings.

Settings can be overridden with ``SCOPEALIGN_``-prefixed environment
variables or a ``.env`` file:

- SCOPEALIGN_BASE_EPOCH_YEAR: Epoch conversions work in (default: 2000)
- SCOPEALIGN_DEGENERACY_TOLERANCE: Smallest accepted sine of the calibration
  star separation (default: 1e-6)
- SCOPEALIGN_TRACKING_INTERVAL_SECONDS: Pause between real-time updates
  (default: 0, run back to back)

Example:
    >>> from scopealign.config import get_settings
    >>> get_settings().base_epoch_year
    2000.0
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from scopealign.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Engine settings shared by an alignment session."""

    base_epoch_year: float = Field(
        default=2000.0,
        description="Epoch that calibration and conversions work in",
    )
    degeneracy_tolerance: float = Field(
        default=1e-6,
        gt=0,
        description="Cross-product magnitude below which calibration is degenerate",
    )
    tracking_interval_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Pause between real-time tracking updates (seconds)",
    )

    model_config = SettingsConfigDict(
        env_prefix="SCOPEALIGN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance.

    Raises:
        ConfigurationError: If an environment override is invalid
    """
    try:
        settings = Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid scopealign settings: {e}") from e
    logger.debug("Loaded settings: %s", settings.model_dump())
    return settings
