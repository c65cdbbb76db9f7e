"""Configuration management for the character progression engine.

This module provides centralized configuration management using
pydantic-settings, supporting environment variables, .env files, and
runtime overrides. The rules feature flags defined here are the only
inputs (besides the static base tables) to the immutable rules snapshot
built in ``dnd_progression.rules.registry``.

Example:
    >>> from dnd_progression.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.max_level
    20

Environment Variables:
    DND_PROGRESSION_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DND_PROGRESSION_RULES_HONOR_SCORE: Enable the optional Honor ability
    DND_PROGRESSION_RULES_SANITY_SCORE: Enable the optional Sanity ability
    DND_PROGRESSION_RULES_ALLOW_FEATS: Allow feats in place of ability score improvements
    DND_PROGRESSION_RULES_METRIC_WEIGHT_UNITS: Use metric units for encumbrance
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_progression.core.constants import MAX_ABILITY_SCORE, MAX_CHARACTER_LEVEL
from dnd_progression.core.exceptions import ConfigurationError


class RulesSettings(BaseSettings):
    """Feature flags that shape the rules snapshot.

    Attributes:
        honor_score: Include the optional Honor ability.
        sanity_score: Include the optional Sanity ability.
        allow_feats: Allow class ability score improvements to grant a feat instead.
        metric_weight_units: Measure carried weight in kilograms.
        currency_weight: Count carried coins toward encumbrance.
        disable_advancements: Skip advancement planning entirely.
        max_level: Highest character level.
        max_ability_score: Default ceiling for ability scores.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_PROGRESSION_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    honor_score: bool = Field(default=False, description="Enable the Honor ability")
    sanity_score: bool = Field(default=False, description="Enable the Sanity ability")
    allow_feats: bool = Field(
        default=True,
        description="Allow feats in place of ability score improvements",
    )
    metric_weight_units: bool = Field(default=False, description="Use metric weight units")
    currency_weight: bool = Field(default=True, description="Coins have weight")
    disable_advancements: bool = Field(
        default=False,
        description="Disable advancement planning on level change",
    )
    max_level: int = Field(
        default=MAX_CHARACTER_LEVEL,
        ge=1,
        le=30,
        description="Maximum character level",
    )
    max_ability_score: int = Field(
        default=MAX_ABILITY_SCORE,
        ge=1,
        le=30,
        description="Default maximum ability score",
    )


class Settings(BaseSettings):
    """Main application settings.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        json_logs: Render logs as JSON.
        rules: Rules feature flags.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_PROGRESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="D&D Character Progression Engine",
        description="Application name",
    )
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    rules: RulesSettings = Field(default_factory=RulesSettings)

    @model_validator(mode="after")
    def validate_debug_logging(self) -> "Settings":
        """Debug mode always logs at DEBUG level.

        Returns:
            Self with the log level adjusted.
        """
        if self.debug and self.log_level != "DEBUG":
            self.log_level = "DEBUG"
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    This is primarily useful for testing or when environment variables
    have changed at runtime.
    """
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
