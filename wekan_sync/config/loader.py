"""Settings loading for the command-line runs.

Settings come from, in increasing order of precedence:
1. Default values from the Pydantic models
2. An optional YAML file (sections ``wekan``, ``merge_check``, ``token_run``),
   whose string values may reference ${VAR_NAME} or ${VAR_NAME:default}
3. Environment variables

Everything here runs before any network call, so a missing base URL,
missing credentials or an unparsable batch aborts the run early.
"""

import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..reconcile.models import CardDescriptor
from ..reconcile.tokens import parse_leading_int
from .exceptions import (
    ConfigurationFileError,
    ConfigurationMissingError,
    ConfigurationValidationError,
)
from .models import MergeCheckSettings, TokenRunSettings, WekanSettings

logger = logging.getLogger(__name__)

CONFIG_PATH_VARIABLE = "WEKAN_SYNC_CONFIG"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")

# settings field -> environment variable
WEKAN_ENV_VARS = {
    "base_url": "WEKAN_BASE_URL",
    "api_token": "WEKAN_API_TOKEN",
    "username": "WEKAN_USERNAME",
    "password": "WEKAN_PASSWORD",
    "user_id": "WEKAN_USER_ID",
    "timeout": "WEKAN_TIMEOUT",
}


class ConfigurationLoader:
    """Builds validated settings from a YAML file and the environment."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        config_path: str | Path | None = None,
    ) -> None:
        """Initialize configuration loader.

        Args:
            environ: Environment mapping, defaults to ``os.environ``
            config_path: Explicit YAML file; falls back to ``WEKAN_SYNC_CONFIG``
        """
        self.environ = environ if environ is not None else os.environ
        path = config_path or self._env(CONFIG_PATH_VARIABLE)
        self._file_data: dict[str, Any] = self._load_file(Path(path)) if path else {}

    def _env(self, name: str) -> str | None:
        """Return an environment variable, treating empty strings as unset."""
        value = self.environ.get(name)
        if value is None or value.strip() == "":
            return None
        return value

    @staticmethod
    def _load_file(config_path: Path) -> dict[str, Any]:
        """Load the YAML settings file.

        Raises:
            ConfigurationFileError: If the file cannot be read or parsed
        """
        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}",
                file_path=str(config_path),
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", file_path=str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", file_path=str(config_path)
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping", file_path=str(config_path)
            )

        logger.debug(f"Loaded configuration file {config_path}")
        return data

    def _substitute(self, value: Any) -> Any:
        """Resolve ${VAR} and ${VAR:default} references in file values.

        Raises:
            ConfigurationMissingError: If a referenced variable without a
                default is not set
        """
        if isinstance(value, dict):
            return {k: self._substitute(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._substitute(item) for item in value]
        if not isinstance(value, str):
            return value

        def replacer(match: re.Match[str]) -> str:
            var_name, default_value = match.group(1), match.group(2)
            env_value = self.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ConfigurationMissingError(
                f"Required environment variable '{var_name}' not found",
                missing_fields=[var_name],
            )

        return _ENV_PATTERN.sub(replacer, value)

    def _section(self, name: str) -> dict[str, Any]:
        section = self._file_data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationFileError(f"Section '{name}' must be a mapping")
        return self._substitute(dict(section))

    def wekan_settings(self) -> WekanSettings:
        """Build the board API settings.

        Raises:
            ConfigurationMissingError: If base URL, credentials or user id are missing
            ConfigurationValidationError: If a value is malformed
        """
        data = self._section("wekan")
        for field_name, variable in WEKAN_ENV_VARS.items():
            value = self._env(variable)
            if value is not None:
                data[field_name] = value

        missing: list[str] = []
        if not data.get("base_url"):
            missing.append(WEKAN_ENV_VARS["base_url"])
        if not data.get("api_token") and not (
            data.get("username") and data.get("password")
        ):
            missing.append(
                f"{WEKAN_ENV_VARS['api_token']} (or "
                f"{WEKAN_ENV_VARS['username']} + {WEKAN_ENV_VARS['password']})"
            )
        if not data.get("user_id"):
            missing.append(WEKAN_ENV_VARS["user_id"])
        if missing:
            raise ConfigurationMissingError(
                f"Missing required configuration: {', '.join(missing)}",
                missing_fields=missing,
            )

        return self._build(WekanSettings, data)

    def merge_check_settings(self) -> MergeCheckSettings:
        """Build the merge-check naming rules."""
        data = self._section("merge_check")
        gh_binary = self._env("GH_BINARY")
        if gh_binary:
            data["gh_binary"] = gh_binary
        return self._build(MergeCheckSettings, data)

    def token_run_settings(self) -> TokenRunSettings:
        """Build the token-accumulation batch from CARDS_JSON and PER_CARD_TOKENS.

        A missing or non-positive PER_CARD_TOKENS is not an error: it yields a
        zero delta, which the run treats as nothing to do. Malformed batch
        entries are dropped and counted in ``rejected_cards``.

        Raises:
            ConfigurationValidationError: If CARDS_JSON is not a JSON array
        """
        data = self._section("token_run")

        raw_tokens = self._env("PER_CARD_TOKENS")
        if raw_tokens is not None:
            data["per_card_tokens"] = raw_tokens
        data["per_card_tokens"] = max(
            parse_leading_int(data.get("per_card_tokens")) or 0, 0
        )

        # With nothing to add the batch is never read, so it cannot fail the run.
        raw_cards = self._env("CARDS_JSON")
        if raw_cards is not None and data["per_card_tokens"] > 0:
            data["cards"], data["rejected_cards"] = self._parse_cards(raw_cards)

        return self._build(TokenRunSettings, data)

    def card_query(self) -> tuple[str, str]:
        """Return the ``(board_id, card_id)`` pair of a single-card query.

        Raises:
            ConfigurationMissingError: If BOARD_ID or CARD_ID are missing
        """
        board_id = self._env("BOARD_ID")
        card_id = self._env("CARD_ID")
        if board_id is None or card_id is None:
            missing = [
                name
                for name, value in (("BOARD_ID", board_id), ("CARD_ID", card_id))
                if value is None
            ]
            raise ConfigurationMissingError(
                f"Missing required configuration: {', '.join(missing)}",
                missing_fields=missing,
            )
        return board_id, card_id

    @staticmethod
    def _parse_cards(raw: str) -> tuple[list[CardDescriptor], int]:
        """Parse the batch, dropping malformed entries.

        Returns:
            The valid descriptors and the number of dropped entries

        Raises:
            ConfigurationValidationError: If CARDS_JSON is not a JSON array
        """
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationValidationError(f"CARDS_JSON is not valid JSON: {e}") from e

        if not isinstance(entries, list):
            raise ConfigurationValidationError("CARDS_JSON must be a JSON array")

        cards: list[CardDescriptor] = []
        rejected = 0
        for position, entry in enumerate(entries):
            try:
                cards.append(CardDescriptor.model_validate(entry))
            except ValidationError as e:
                rejected += 1
                logger.error(
                    f"Skipping CARDS_JSON entry {position} ({entry!r}): "
                    f"{e.error_count()} validation error(s)"
                )
        return cards, rejected

    @staticmethod
    def _build(model: Any, data: dict[str, Any]) -> Any:
        try:
            return model(**data)
        except (ValidationError, ValueError) as e:
            errors = e.errors() if isinstance(e, ValidationError) else []
            raise ConfigurationValidationError(
                f"Invalid {model.__name__}: {e}", validation_errors=errors
            ) from e
