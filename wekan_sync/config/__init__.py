"""Settings for the reconciliation runs.

Example usage:
    from wekan_sync.config import ConfigurationLoader

    loader = ConfigurationLoader()
    settings = loader.wekan_settings()
    base_url = settings.base_url
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader
from .models import MergeCheckSettings, TokenRunSettings, WekanSettings

__all__ = [
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationMissingError",
    "ConfigurationValidationError",
    "MergeCheckSettings",
    "TokenRunSettings",
    "WekanSettings",
]
