"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        CombatTrackerError: Base exception for all application errors.
        ValidationError, CapacityError, StorageError, CorruptDataError, ...

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up diagnostic logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from combat_tracker.core.config import (
    RulesSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from combat_tracker.core.exceptions import (
    CapacityError,
    CombatError,
    CombatTrackerError,
    ConfigurationError,
    CorruptDataError,
    DeathSaveError,
    DiceRollError,
    NothingToUndoError,
    RecordParseError,
    StorageError,
    TurnManagementError,
    ValidationError,
)
from combat_tracker.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


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
    # Configuration
    "Settings",
    "StorageSettings",
    "RulesSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
