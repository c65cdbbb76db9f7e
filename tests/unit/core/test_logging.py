"""Tests for structured logging helpers."""

from __future__ import annotations

import logging

import structlog
from structlog.testing import capture_logs

from dnd_progression.core.logging import (
    add_engine_context,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestLogging:
    """Tests for logger creation and context binding."""

    def test_get_logger_logs_events(self) -> None:
        logger = get_logger(__name__)
        with capture_logs() as logs:
            logger.info("Step applied", level=5)

        assert logs[0]["event"] == "Step applied"
        assert logs[0]["level"] == 5

    def test_bound_context_is_merged(self) -> None:
        """Test context variables appear in merged event dicts."""
        bind_context(actor_id="a1", class_id="c1")
        try:
            merged = structlog.contextvars.merge_contextvars(None, "info", {"event": "x"})
            assert merged["actor_id"] == "a1"
            unbind_context("class_id")
            merged = structlog.contextvars.merge_contextvars(None, "info", {"event": "x"})
            assert "class_id" not in merged
        finally:
            clear_context()

    def test_engine_context(self) -> None:
        from dnd_progression import __version__

        event = add_engine_context(None, "info", {"event": "x"})

        assert event["app"] == "dnd_progression"
        assert event["version"] == __version__

    def test_configure_logging_json(self) -> None:
        """Test configuration accepts JSON output."""
        try:
            configure_logging(level="WARNING", json_format=True)
            assert structlog.is_configured()
        finally:
            structlog.reset_defaults()
            logging.captureWarnings(False)

    def test_configure_from_settings(self, mock_env_vars: dict[str, str]) -> None:
        """Test the settings log level reaches the standard library root logger."""
        try:
            configure_from_settings()
            assert logging.getLogger().level == logging.DEBUG
        finally:
            structlog.reset_defaults()
            logging.captureWarnings(False)
