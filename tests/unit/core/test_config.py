"""Tests for configuration management."""

from __future__ import annotations

import pytest

from dnd_progression.core.config import (
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dnd_progression.core.constants import MAX_ABILITY_SCORE, MAX_CHARACTER_LEVEL
from dnd_progression.core.exceptions import ConfigurationError


class TestRulesSettings:
    """Tests for RulesSettings feature flags."""

    def test_default_values(self) -> None:
        """Test default rules feature flags."""
        settings = RulesSettings()

        assert settings.honor_score is False
        assert settings.sanity_score is False
        assert settings.allow_feats is True
        assert settings.metric_weight_units is False
        assert settings.disable_advancements is False
        assert settings.max_level == MAX_CHARACTER_LEVEL
        assert settings.max_ability_score == MAX_ABILITY_SCORE

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test flags are read from prefixed environment variables."""
        monkeypatch.setenv("DND_PROGRESSION_RULES_HONOR_SCORE", "true")
        monkeypatch.setenv("DND_PROGRESSION_RULES_MAX_LEVEL", "15")

        settings = RulesSettings()

        assert settings.honor_score is True
        assert settings.max_level == 15

    def test_max_level_bounds(self) -> None:
        """Test max level must stay within 1-30."""
        with pytest.raises(ValueError):
            RulesSettings(max_level=0)
        with pytest.raises(ValueError):
            RulesSettings(max_level=31)


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_settings(self) -> None:
        """Test default settings initialization."""
        settings = Settings()

        assert settings.app_name == "D&D Character Progression Engine"
        assert settings.app_version == "0.1.0"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.rules, RulesSettings)

    def test_debug_forces_debug_logging(self, mock_env_vars: dict[str, str]) -> None:
        """Test debug mode overrides the configured log level."""
        settings = Settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"


class TestGetSettings:
    """Tests for get_settings singleton function."""

    def test_returns_cached_instance(self) -> None:
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_clear_cache_reloads(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test clearing the cache picks up environment changes."""
        first = get_settings()
        monkeypatch.setenv("DND_PROGRESSION_LOG_LEVEL", "ERROR")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.log_level == "ERROR"

    def test_invalid_settings_raise_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid environment values surface as ConfigurationError."""
        monkeypatch.setenv("DND_PROGRESSION_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert "original_error" in exc_info.value.details
