"""Settings manager with runtime configuration support.

This module provides a centralized settings broker that can:
- Load from environment variables
- Be modified at runtime
- Validate settings
- Support different environments (dev, test, prod)

These are the settings of the smartconfig service itself, not the
settings it resolves from a store.
"""

import os
from dataclasses import asdict, dataclass
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional

from loguru import logger

from ..resolution.exceptions import InvalidVersionFormatError
from ..resolution.keys import DEFAULT_KEY_NAME
from ..resolution.semver import SemanticVersion


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class Settings:
    """Base class for settings dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)


@dataclass
class ApplicationSettings(Settings):
    """Application-level settings."""

    name: str = "smartconfig"
    version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: str = "DEBUG"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["environment"] = self.environment.value  # Convert Enum to string
        return data


@dataclass
class StorageSettings(Settings):
    """Storage-related settings."""

    table_name_settings: str = "settings"
    table_name_setting_dimensions: str = "setting_dimensions"


@dataclass
class DatabaseSettings(Settings):
    """Database connection settings."""

    url: str = "sqlite:///smartconfig.db"
    pool_size: int = 10
    max_overflow: int = 20
    echo: bool = False


@dataclass
class ResolutionSettings(Settings):
    """Defaults used when resolving settings against a store."""

    environment_key_name: str = "Environment"
    version_key_name: str = "Version"
    environment: str = ""
    version: str = ""


class SettingsManager:
    """Centralized settings manager with runtime configuration support.

    Features:
    - Singleton pattern for global access
    - Thread-safe operations
    - Runtime configuration changes
    - Environment variable loading
    - Validation

    Usage:
        # Get instance
        settings = SettingsManager.get_instance()

        # Access settings
        db_url = settings.database.url

        # Update at runtime
        settings.resolution.environment = "PROD"
    """

    _instance: Optional["SettingsManager"] = None
    _lock: Lock = Lock()

    def __init__(self):
        """Initialize settings manager.

        Note: Use get_instance() instead of direct instantiation.
        """
        self.application = ApplicationSettings()
        self.storage = StorageSettings()
        self.database = DatabaseSettings()
        self.resolution = ResolutionSettings()
        self._change_lock = Lock()

    @classmethod
    def get_instance(cls) -> "SettingsManager":
        """Get or create the singleton instance using double-checked locking.

        Returns:
            SettingsManager instance
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
                    cls._instance.load_from_env()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (mainly for testing)."""
        with cls._lock:
            cls._instance = None

    def load_from_env(self, prefix: str = "") -> None:
        """Load settings from environment variables.

        Args:
            prefix: Optional prefix for environment variables (e.g., "SMARTCONFIG_")
        """
        with self._change_lock:

            env_vars = os.environ

            logger.info(
                "Loading settings from environment variables" + (f" with prefix={prefix}" if prefix else "")
            )

            # Application settings
            app_mapping = {
                f"{prefix}APP_NAME": "name",
                f"{prefix}APP_VERSION": "version",
                f"{prefix}APP_ENVIRONMENT": "environment",
                f"{prefix}APP_DEBUG": "debug",
                f"{prefix}APP_LOG_LEVEL": "log_level",
            }

            for env_key, attr_name in app_mapping.items():
                if env_key in env_vars:
                    value = env_vars[env_key]
                    if attr_name == "environment":
                        value = Environment(value.lower())
                    elif attr_name == "debug":
                        value = value.lower() in ["true", "1", "yes"]
                    setattr(self.application, attr_name, value)

            # Storage settings
            storage_mapping = {
                f"{prefix}TABLE_NAME_SETTINGS": "table_name_settings",
                f"{prefix}TABLE_NAME_SETTING_DIMENSIONS": "table_name_setting_dimensions",
            }

            for env_key, attr_name in storage_mapping.items():
                if env_key in env_vars:
                    setattr(self.storage, attr_name, env_vars[env_key])

            # Database settings
            db_mapping = {
                f"{prefix}DATABASE_URL": "url",
                f"{prefix}DATABASE_POOL_SIZE": "pool_size",
                f"{prefix}DATABASE_MAX_OVERFLOW": "max_overflow",
                f"{prefix}DATABASE_ECHO": "echo",
            }

            for env_key, attr_name in db_mapping.items():
                if env_key in env_vars:
                    value = env_vars[env_key]
                    # Type conversion
                    if attr_name in ["pool_size", "max_overflow"]:
                        value = int(value)
                    elif attr_name == "echo":
                        value = value.lower() in ["true", "1", "yes"]
                    setattr(self.database, attr_name, value)

            # Resolution settings
            resolution_mapping = {
                f"{prefix}RESOLUTION_ENVIRONMENT_KEY_NAME": "environment_key_name",
                f"{prefix}RESOLUTION_VERSION_KEY_NAME": "version_key_name",
                f"{prefix}RESOLUTION_ENVIRONMENT": "environment",
                f"{prefix}RESOLUTION_VERSION": "version",
            }

            for env_key, attr_name in resolution_mapping.items():
                if env_key in env_vars:
                    setattr(self.resolution, attr_name, env_vars[env_key])

            logger.info("Settings successfully loaded from environment")

    def export_settings(self, mask_secrets: bool = True) -> Dict[str, Any]:
        """Export all settings as a dictionary.

        Args:
            mask_secrets: If True, mask the database url (it may embed credentials)

        Returns:
            Dictionary containing all settings
        """
        settings = {
            "application": self.application.to_dict(),
            "storage": self.storage.to_dict(),
            "database": self.database.to_dict(),
            "resolution": self.resolution.to_dict(),
        }

        if mask_secrets:
            sensitive_fields = [
                ("database", "url"),
            ]
            for section, field in sensitive_fields:
                if settings[section] and settings[section][field]:
                    settings[section][field] = "***MASKED***"

        return settings

    def validate(self) -> Dict[str, List[str]]:
        """Validate current settings.

        Returns:
            Dictionary with validation errors by category
        """
        errors: Dict[str, List[str]] = {
            "application": [],
            "storage": [],
            "database": [],
            "resolution": [],
        }

        # Application validation
        if not self.application.name:
            errors["application"].append("Application name is required")
        if self.application.log_level not in [
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ]:
            errors["application"].append("Invalid log level")

        # Storage validation
        if not self.storage.table_name_settings:
            errors["storage"].append("Settings table name is required")
        if self.storage.table_name_settings == self.storage.table_name_setting_dimensions:
            errors["storage"].append("Settings and dimension tables must differ")

        # Database validation
        if not self.database.url:
            errors["database"].append("Database url is required")
        if self.database.pool_size < 1:
            errors["database"].append("Database pool size must be positive")

        # Resolution validation
        if not self.resolution.environment_key_name or not self.resolution.version_key_name:
            errors["resolution"].append("Dimension names are required")
        if self.resolution.environment_key_name.casefold() == self.resolution.version_key_name.casefold():
            errors["resolution"].append("Environment and version dimensions must differ")
        if DEFAULT_KEY_NAME.casefold() in (
            self.resolution.environment_key_name.casefold(),
            self.resolution.version_key_name.casefold(),
        ):
            errors["resolution"].append("Dimension names must differ from the default key name")
        if self.resolution.version:
            try:
                SemanticVersion.parse(self.resolution.version)
            except InvalidVersionFormatError:
                errors["resolution"].append("Resolution version must be a semantic version")

        # Remove empty error lists
        errors = {k: v for k, v in errors.items() if v}

        return errors

    def is_development(self) -> bool:
        """Check if current environment is development."""
        return self.application.environment == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if current environment is testing."""
        return self.application.environment == Environment.TESTING

    def is_production(self) -> bool:
        """Check if current environment is production."""
        return self.application.environment == Environment.PRODUCTION


# Convenience function for global access
def get_settings() -> SettingsManager:
    """Get the global settings manager instance.

    Returns:
        SettingsManager singleton instance
    """
    return SettingsManager.get_instance()
