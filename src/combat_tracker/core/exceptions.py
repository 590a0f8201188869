"""Custom exception hierarchy for the combat tracker.

This module defines the exception hierarchy used by the combat state
engine. All exceptions inherit from CombatTrackerError, enabling unified
error handling at the command boundary while preserving domain-specific
context. Every failure is recoverable: the command dispatcher turns these
exceptions into user-visible messages rather than letting them escape.

Example:
    >>> from combat_tracker.core.exceptions import ValidationError
    >>> raise ValidationError("Name cannot be empty", field_name="name")
"""

from __future__ import annotations

from typing import Any


class CombatTrackerError(Exception):
    """Base exception for all combat tracker errors.

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
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Input & Capacity Exceptions
# =============================================================================


class ValidationError(CombatTrackerError):
    """Raised when user input is malformed or out of range.

    The command that raised it is aborted without mutating state.
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


class CapacityError(CombatTrackerError):
    """Raised when a bounded container cannot accept more entries.

    The roster rejects the add; the undo stack never raises this because it
    evicts its oldest snapshot instead.
    """

    def __init__(
        self,
        message: str,
        *,
        limit: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize capacity error with the exceeded limit.

        Args:
            message: Human-readable error description.
            limit: The capacity that would have been exceeded.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if limit is not None:
            combined_details["limit"] = limit
        super().__init__(message, details=combined_details)


class ConfigurationError(CombatTrackerError):
    """Raised when application configuration is invalid."""

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


# =============================================================================
# Combat Engine Exceptions
# =============================================================================


class CombatError(CombatTrackerError):
    """Raised when a combat command cannot be applied.

    This includes issues with turn order, death saves, or undo history.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: int | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize combat error with combat context.

        Args:
            message: Human-readable error description.
            combatant_id: ID of the combatant involved.
            round_number: Round in which the error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if combatant_id is not None:
            combined_details["combatant_id"] = combatant_id
        if round_number is not None:
            combined_details["round_number"] = round_number
        super().__init__(message, details=combined_details)


class TurnManagementError(CombatError):
    """Raised when turn or selection management fails."""


class DeathSaveError(CombatError):
    """Raised when a death-save action is not valid for the combatant."""


class NothingToUndoError(CombatError):
    """Raised when undo is requested with an empty history."""


class DiceRollError(CombatTrackerError):
    """Raised when a dice expression cannot be rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Storage Exceptions
# =============================================================================


class StorageError(CombatTrackerError):
    """Raised when a save, load or export file cannot be opened or written.

    Engine state is left unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize storage error with the attempted path.

        Args:
            message: Human-readable error description.
            path: The file path that was being accessed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if path:
            combined_details["path"] = path
        super().__init__(message, details=combined_details)


class CorruptDataError(StorageError):
    """Raised when a save file fails structural parsing.

    The load is aborted entirely; no partial state is applied.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        line_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize corrupt data error with location context.

        Args:
            message: Human-readable error description.
            path: The save file path.
            line_number: 1-based line where parsing failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if line_number is not None:
            combined_details["line_number"] = line_number
        super().__init__(message, path=path, details=combined_details)


class RecordParseError(CombatTrackerError):
    """Raised for a single malformed combatant record.

    The loader catches it, drops the record with a warning and continues.
    """

    def __init__(
        self,
        message: str,
        *,
        line_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize record parse error with location context.

        Args:
            message: Human-readable error description.
            line_number: 1-based line of the rejected record.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if line_number is not None:
            combined_details["line_number"] = line_number
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "CombatTrackerError",
    # Input & capacity
    "ValidationError",
    "CapacityError",
    "ConfigurationError",
    # Combat engine
    "CombatError",
    "TurnManagementError",
    "DeathSaveError",
    "NothingToUndoError",
    "DiceRollError",
    # Storage
    "StorageError",
    "CorruptDataError",
    "RecordParseError",
]
