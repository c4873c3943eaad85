"""Unit tests for the configuration error family."""

import pytest

from wekan_sync.config import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)


@pytest.mark.parametrize(
    "error",
    [
        ConfigurationFileError("bad file"),
        ConfigurationValidationError("bad value"),
        ConfigurationMissingError("absent"),
    ],
)
def test_errors_share_a_base(error) -> None:
    assert isinstance(error, ConfigurationError)


def test_file_error_keeps_path() -> None:
    error = ConfigurationFileError("Configuration file not found", file_path="/etc/x.yaml")

    assert str(error) == "Configuration file not found"
    assert error.file_path == "/etc/x.yaml"
    assert ConfigurationFileError("no path").file_path is None


def test_validation_error_defaults_to_no_errors() -> None:
    assert ConfigurationValidationError("bad").validation_errors == []

    errors = [{"loc": ("timeout",), "msg": "too small"}]
    assert ConfigurationValidationError("bad", validation_errors=errors).validation_errors == errors


def test_missing_error_names_fields() -> None:
    assert ConfigurationMissingError("absent").missing_fields == []
    assert ConfigurationMissingError(
        "absent", missing_fields=["WEKAN_USER_ID"]
    ).missing_fields == ["WEKAN_USER_ID"]
