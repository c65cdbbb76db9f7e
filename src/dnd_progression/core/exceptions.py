"""Custom exception hierarchy for the character progression engine.

This module defines the exception hierarchy used across the rules engine.
All exceptions inherit from DndProgressionError, enabling unified error
handling at the host boundary while preserving domain-specific context.

Two members of the taxonomy are never raised out of the engine:
ReversalError and PlanningFailure are *recorded* (on reversal records and
on the advancement manager respectively) so that a half-finished reversal
or a broken class configuration can never block a level change.

Example:
    >>> from dnd_progression.core.exceptions import ValidationError
    >>> raise ValidationError("Too many points assigned", field_name="assignments")
"""

from __future__ import annotations

from typing import Any


class DndProgressionError(Exception):
    """Base exception for all progression engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndProgressionError):
    """Raised when application or rules configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndProgressionError):
    """Raised when input violates configured bounds.

    Raised by advancement ``apply()`` before any mutation happens, so a
    rejected input never leaves the actor half-updated.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class FormulaError(ValidationError):
    """Raised when a formula is not arithmetically safe.

    Also raised when a formula that must be deterministic contains dice.
    """

    def __init__(
        self,
        message: str,
        *,
        formula: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize formula error with the offending formula.

        Args:
            message: Human-readable error description.
            formula: The formula that failed to evaluate.
            details: Optional dictionary containing additional error context.
        """
        super().__init__(message, field_name="formula", invalid_value=formula, details=details)


class DocumentNotFoundError(DndProgressionError):
    """Raised when the document store has no document with the given id."""

    def __init__(
        self,
        message: str,
        *,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing document id.

        Args:
            message: Human-readable error description.
            document_id: Identifier of the missing document.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if document_id:
            combined_details["document_id"] = document_id
        super().__init__(message, details=combined_details)


# =============================================================================
# Advancement Domain Exceptions
# =============================================================================


class AdvancementError(DndProgressionError):
    """Base exception for advancement application and planning errors."""

    def __init__(
        self,
        message: str,
        *,
        advancement_id: str | None = None,
        level: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize advancement error with advancement context.

        Args:
            message: Human-readable error description.
            advancement_id: Identifier of the advancement involved.
            level: Level at which the failure happened.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if advancement_id:
            combined_details["advancement_id"] = advancement_id
        if level is not None:
            combined_details["level"] = level
        super().__init__(message, details=combined_details)


class ReversalError(AdvancementError):
    """A recorded value could not be fully reversed.

    Typically the embedded items it references were deleted out-of-band.
    Reversal proceeds with whatever can be undone; this error is attached
    to the reversal record and logged instead of raised.
    """


class PlanningFailure(AdvancementError):
    """Configuration is missing or malformed enough that no plan can be built.

    Recorded on the manager; the resulting flight plan is empty.
    """


class FlightAbortedError(AdvancementError):
    """A flight was aborted and every applied step has been rolled back."""


class InvalidFlightStateError(AdvancementError):
    """A manager operation was requested in a state that does not allow it."""

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid state error with state context.

        Args:
            message: Human-readable error description.
            current_state: The manager's current state.
            expected_states: States in which the operation is valid.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_state:
            combined_details["current_state"] = current_state
        if expected_states:
            combined_details["expected_states"] = expected_states
        super().__init__(message, details=combined_details)


# =============================================================================
# Migration Warnings
# =============================================================================


class MigrationWarning(UserWarning):
    """A legacy value could not be confidently mapped to the current schema.

    The migration stores a safe fallback and the load continues.
    """


__all__ = [
    # Base exception
    "DndProgressionError",
    # Configuration & validation
    "ConfigurationError",
    "ValidationError",
    "FormulaError",
    "DocumentNotFoundError",
    # Advancement
    "AdvancementError",
    "ReversalError",
    "PlanningFailure",
    "FlightAbortedError",
    "InvalidFlightStateError",
    # Warnings
    "MigrationWarning",
]
