"""Errors raised while building settings, before any network call."""

from typing import Any


class ConfigurationError(Exception):
    """A run cannot start with the settings it was given."""


class ConfigurationFileError(ConfigurationError):
    """The YAML settings file is missing, unreadable or not a mapping."""

    def __init__(self, message: str, file_path: str | None = None):
        super().__init__(message)
        self.file_path = file_path


class ConfigurationValidationError(ConfigurationError):
    """A value is present but malformed.

    ``validation_errors`` holds the pydantic error list when the value was
    rejected by a settings model.
    """

    def __init__(self, message: str, validation_errors: list[Any] | None = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []


class ConfigurationMissingError(ConfigurationError):
    """Required settings are absent; ``missing_fields`` names the variables."""

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []
