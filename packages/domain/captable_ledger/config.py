"""Runtime configuration for the ledger bridge.

Values are read from environment variables prefixed with
``CAPTABLE_LEDGER_`` (e.g. ``CAPTABLE_LEDGER_STRICT_ENUMS=false``).

Converters accept an explicit ``strict`` argument; when it is omitted they
fall back to ``get_settings().strict_enums``.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerBridgeSettings(BaseSettings):
    """Settings for conversion and extraction.

    Environment variables (with ``model_config.env_prefix``):

    * ``CAPTABLE_LEDGER_STRICT_ENUMS``
    * ``CAPTABLE_LEDGER_MAX_CONCURRENCY``
    * ``CAPTABLE_LEDGER_LOG_LEVEL``
    * ``CAPTABLE_LEDGER_DEFAULT_CURRENCY``
    """

    strict_enums: bool = Field(
        True,
        description=(
            "Fail on unrecognized vesting day-of-month and period values and on "
            "unknown stock class conversion mechanisms or triggers. When False "
            "the legacy fallbacks are applied and a warning is logged."
        ),
    )
    max_concurrency: int = Field(
        8,
        ge=1,
        description="Maximum number of concurrent ledger reads during extraction.",
    )
    log_level: str = Field(
        "INFO",
        description="Log level applied to the captable_ledger logger.",
    )
    default_currency: str = Field(
        "USD",
        min_length=3,
        max_length=3,
        description="Currency for placeholder monetary values the ledger schema requires.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="CAPTABLE_LEDGER_",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> LedgerBridgeSettings:
    """Return the process-wide settings instance."""
    return LedgerBridgeSettings()


def configure_logging(settings: Optional[LedgerBridgeSettings] = None) -> logging.Logger:
    """Apply the configured level to the package logger.

    Handlers are left to the host application; this only sets the level.

    Returns:
        The ``captable_ledger`` logger
    """
    settings = settings or get_settings()
    logger = logging.getLogger("captable_ledger")
    logger.setLevel(settings.log_level)
    return logger
