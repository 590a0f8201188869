"""Configuration management for the combat tracker.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and runtime overrides.

Example:
    >>> from combat_tracker.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.max_combatants
    50

Environment Variables:
    COMBAT_TRACKER_SAVE_FILE: Path of the encounter save file
    COMBAT_TRACKER_LOG_EXPORT_FILE: Path the combat log is appended to
    COMBAT_TRACKER_RULES_MAX_COMBATANTS: Roster capacity
    COMBAT_TRACKER_RULES_UNDO_DEPTH: Number of undo snapshots kept
    COMBAT_TRACKER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from combat_tracker.core.constants import (
    LOG_EXPORT_FILE_NAME,
    MAX_COMBATANTS,
    MAX_DEXTERITY,
    MAX_INITIATIVE,
    MAX_MAX_HP,
    MAX_UNDO_STACK,
    MIN_DEXTERITY,
    MIN_INITIATIVE,
    MIN_MAX_HP,
    NAME_LENGTH,
    SAVE_FILE_NAME,
)
from combat_tracker.core.exceptions import ConfigurationError


class StorageSettings(BaseSettings):
    """File locations used by save, load and log export.

    Attributes:
        save_file: Encounter save file.
        log_export_file: File the combat log is appended to on export.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    save_file: Path = Field(
        default_factory=lambda: Path.home() / SAVE_FILE_NAME,
        description="Encounter save file",
    )
    log_export_file: Path = Field(
        default_factory=lambda: Path.home() / LOG_EXPORT_FILE_NAME,
        description="Combat log export file",
    )

    @field_validator("save_file", "log_export_file", mode="after")
    @classmethod
    def expand_user(cls, value: Path) -> Path:
        """Expand a leading ``~`` in configured paths."""
        return value.expanduser()


class RulesSettings(BaseSettings):
    """Limits and optional rules of the combat engine.

    Attributes:
        max_combatants: Roster capacity.
        name_length: Name buffer size (names hold one character less).
        undo_depth: Number of snapshots kept by the undo stack.
        min_initiative: Lowest accepted initiative.
        max_initiative: Highest accepted initiative.
        min_dexterity: Lowest accepted dexterity tiebreaker.
        max_dexterity: Highest accepted dexterity tiebreaker.
        min_max_hp: Lowest accepted maximum HP.
        max_max_hp: Highest accepted maximum HP.
        instant_death: Apply the massive-damage instant death rule.
        auto_death_saves: Roll a death save when a dying player's turn starts.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_TRACKER_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_combatants: int = Field(default=MAX_COMBATANTS, ge=1, le=1000)
    name_length: int = Field(default=NAME_LENGTH, ge=2, le=256)
    undo_depth: int = Field(default=MAX_UNDO_STACK, ge=1, le=100)
    min_initiative: int = Field(default=MIN_INITIATIVE)
    max_initiative: int = Field(default=MAX_INITIATIVE)
    min_dexterity: int = Field(default=MIN_DEXTERITY)
    max_dexterity: int = Field(default=MAX_DEXTERITY)
    min_max_hp: int = Field(default=MIN_MAX_HP, ge=1)
    max_max_hp: int = Field(default=MAX_MAX_HP, ge=1)
    instant_death: bool = Field(default=True, description="Massive damage kills outright")
    auto_death_saves: bool = Field(
        default=True,
        description="Roll death saves automatically at turn start",
    )

    @model_validator(mode="after")
    def validate_ranges(self) -> "RulesSettings":
        """Ensure every configured range is non-empty.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If a minimum exceeds its maximum.
        """
        for low_key, high_key in (
            ("min_initiative", "max_initiative"),
            ("min_dexterity", "max_dexterity"),
            ("min_max_hp", "max_max_hp"),
        ):
            low = getattr(self, low_key)
            high = getattr(self, high_key)
            if low > high:
                raise ConfigurationError(
                    f"{low_key} ({low}) must not exceed {high_key} ({high})",
                    config_key=low_key,
                )
        return self

    @property
    def max_name_chars(self) -> int:
        """Longest name accepted, in characters."""
        return self.name_length - 1


class Settings(BaseSettings):
    """Main application settings aggregating all configuration groups.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Diagnostic logging level.
        json_logs: Render diagnostic logs as JSON lines.
        storage: File location settings.
        rules: Combat rule settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMBAT_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="D&D Initiative Tracker", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(default=False, description="JSON diagnostic logs")

    storage: StorageSettings = Field(default_factory=StorageSettings)
    rules: RulesSettings = Field(default_factory=RulesSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "StorageSettings",
    "RulesSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
