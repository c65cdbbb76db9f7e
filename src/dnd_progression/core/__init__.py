"""Core module providing configuration, logging, and base exceptions.

This module serves as the foundation for the character progression engine,
providing the infrastructure components used by the rules, schema,
calculator, and advancement layers.

Exports:
    Exceptions:
        DndProgressionError: Base exception for all engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Input and data validation errors.
        AdvancementError: Advancement application and planning errors.

    Configuration:
        Settings: Main application settings class.
        RulesSettings: Feature flags feeding the rules snapshot.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from dnd_progression.core.config import (
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dnd_progression.core.exceptions import (
    AdvancementError,
    ConfigurationError,
    DndProgressionError,
    DocumentNotFoundError,
    FlightAbortedError,
    FormulaError,
    InvalidFlightStateError,
    MigrationWarning,
    PlanningFailure,
    ReversalError,
    ValidationError,
)
from dnd_progression.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


__all__ = [
    # Base exception
    "DndProgressionError",
    # Configuration & validation exceptions
    "ConfigurationError",
    "ValidationError",
    "FormulaError",
    "DocumentNotFoundError",
    # Advancement exceptions
    "AdvancementError",
    "ReversalError",
    "PlanningFailure",
    "FlightAbortedError",
    "InvalidFlightStateError",
    # Warnings
    "MigrationWarning",
    # Configuration
    "Settings",
    "RulesSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
