"""
Unit tests for configuration loading.

Why: Runs must fail before any network call when settings are missing or
     malformed, and a zero token delta must never fail a run.

What: Tests ConfigurationLoader for the board API settings, merge-check
      settings, token batches and single-card queries.

How: Passes explicit environment mappings and temporary YAML files.
"""

import json
from pathlib import Path

import pytest

from wekan_sync.config import (
    ConfigurationFileError,
    ConfigurationLoader,
    ConfigurationMissingError,
    ConfigurationValidationError,
)

WEKAN_ENV = {
    "WEKAN_BASE_URL": "https://wekan.example.com/",
    "WEKAN_API_TOKEN": "tok",
    "WEKAN_USER_ID": "user-1",
}


def write_yaml(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "wekan-sync.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestWekanSettings:
    """Test ConfigurationLoader.wekan_settings."""

    def test_from_environment(self) -> None:
        settings = ConfigurationLoader(environ=WEKAN_ENV).wekan_settings()

        assert settings.base_url == "https://wekan.example.com"
        assert settings.api_token == "tok"
        assert settings.user_id == "user-1"
        assert not settings.uses_login

    def test_login_credentials(self) -> None:
        environ = {
            "WEKAN_BASE_URL": "http://localhost:8080",
            "WEKAN_USERNAME": "jarbas",
            "WEKAN_PASSWORD": "pw",
            "WEKAN_USER_ID": "user-1",
            "WEKAN_TIMEOUT": "10",
        }

        settings = ConfigurationLoader(environ=environ).wekan_settings()

        assert settings.uses_login
        assert settings.timeout == 10

    def test_missing_everything(self) -> None:
        with pytest.raises(ConfigurationMissingError) as exc_info:
            ConfigurationLoader(environ={}).wekan_settings()

        missing = exc_info.value.missing_fields
        assert "WEKAN_BASE_URL" in missing
        assert "WEKAN_USER_ID" in missing
        assert any("WEKAN_API_TOKEN" in field for field in missing)

    def test_empty_values_count_as_missing(self) -> None:
        environ = {**WEKAN_ENV, "WEKAN_BASE_URL": "  "}

        with pytest.raises(ConfigurationMissingError) as exc_info:
            ConfigurationLoader(environ=environ).wekan_settings()

        assert exc_info.value.missing_fields == ["WEKAN_BASE_URL"]

    def test_password_without_username(self) -> None:
        environ = {
            "WEKAN_BASE_URL": "http://localhost",
            "WEKAN_PASSWORD": "pw",
            "WEKAN_USER_ID": "user-1",
        }

        with pytest.raises(ConfigurationMissingError):
            ConfigurationLoader(environ=environ).wekan_settings()

    def test_invalid_url(self) -> None:
        environ = {**WEKAN_ENV, "WEKAN_BASE_URL": "wekan.example.com"}

        with pytest.raises(ConfigurationValidationError):
            ConfigurationLoader(environ=environ).wekan_settings()

    def test_yaml_file_with_environment_override(self, tmp_path) -> None:
        path = write_yaml(
            tmp_path,
            "wekan:\n"
            "  base_url: https://from-file.example.com\n"
            "  api_token: file-token\n"
            "  user_id: file-user\n",
        )

        loader = ConfigurationLoader(
            environ={"WEKAN_USER_ID": "env-user"}, config_path=path
        )
        settings = loader.wekan_settings()

        assert settings.base_url == "https://from-file.example.com"
        assert settings.api_token == "file-token"
        assert settings.user_id == "env-user"

    def test_config_path_from_environment(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "merge_check:\n  pr_field_name: Pull Request\n")

        loader = ConfigurationLoader(environ={"WEKAN_SYNC_CONFIG": str(path)})

        assert loader.merge_check_settings().pr_field_name == "Pull Request"


class TestConfigurationFile:
    """Test YAML file handling."""

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationFileError) as exc_info:
            ConfigurationLoader(environ={}, config_path=tmp_path / "nope.yaml")

        assert exc_info.value.file_path.endswith("nope.yaml")

    def test_invalid_yaml(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "wekan: [unclosed\n")

        with pytest.raises(ConfigurationFileError):
            ConfigurationLoader(environ={}, config_path=path)

    def test_non_mapping(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "- a\n- b\n")

        with pytest.raises(ConfigurationFileError):
            ConfigurationLoader(environ={}, config_path=path)

    def test_empty_file(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "")

        loader = ConfigurationLoader(environ={}, config_path=path)

        assert loader.merge_check_settings().source_list_keyword == "merge"

    def test_section_must_be_mapping(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "merge_check: nope\n")

        with pytest.raises(ConfigurationFileError):
            ConfigurationLoader(environ={}, config_path=path).merge_check_settings()

    def test_unknown_key_rejected(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "merge_check:\n  colour: blue\n")

        with pytest.raises(ConfigurationValidationError):
            ConfigurationLoader(environ={}, config_path=path).merge_check_settings()


class TestEnvironmentReferences:
    """Test ${VAR} references inside the YAML file."""

    def test_reference_resolved(self, tmp_path) -> None:
        path = write_yaml(
            tmp_path,
            "wekan:\n"
            "  base_url: ${TEST_WEKAN_HOST:http://localhost:3000}\n"
            "  api_token: ${TEST_WEKAN_TOKEN}\n"
            "  user_id: u\n"
            "merge_check:\n"
            "  target_list_keywords: ['${TEST_TARGET_KEYWORD}']\n",
        )
        environ = {"TEST_WEKAN_TOKEN": "from-env", "TEST_TARGET_KEYWORD": "qa"}

        loader = ConfigurationLoader(environ=environ, config_path=path)
        settings = loader.wekan_settings()

        assert settings.base_url == "http://localhost:3000"
        assert settings.api_token == "from-env"
        assert loader.merge_check_settings().target_list_keywords == ["qa"]

    def test_missing_reference(self, tmp_path) -> None:
        path = write_yaml(tmp_path, "wekan:\n  api_token: ${TEST_WEKAN_MISSING}\n")

        loader = ConfigurationLoader(environ={}, config_path=path)

        with pytest.raises(ConfigurationMissingError) as exc_info:
            loader.wekan_settings()

        assert exc_info.value.missing_fields == ["TEST_WEKAN_MISSING"]

    def test_environment_values_taken_verbatim(self) -> None:
        environ = {
            "WEKAN_BASE_URL": "http://localhost",
            "WEKAN_USERNAME": "jarbas",
            "WEKAN_PASSWORD": "pa${x}ss",
            "WEKAN_USER_ID": "user-1",
        }

        settings = ConfigurationLoader(environ=environ).wekan_settings()

        assert settings.password == "pa${x}ss"


class TestMergeCheckSettings:
    """Test ConfigurationLoader.merge_check_settings."""

    def test_defaults(self) -> None:
        settings = ConfigurationLoader(environ={}).merge_check_settings()

        assert settings.source_list_keyword == "merge"
        assert settings.target_list_keywords == ["pendente", "teste"]
        assert settings.pr_field_name == "PR"
        assert settings.gh_binary == "gh"

    def test_gh_binary_from_environment(self) -> None:
        settings = ConfigurationLoader(
            environ={"GH_BINARY": "/usr/local/bin/gh"}
        ).merge_check_settings()

        assert settings.gh_binary == "/usr/local/bin/gh"


class TestTokenRunSettings:
    """Test ConfigurationLoader.token_run_settings."""

    def test_batch(self) -> None:
        cards = [
            {"id": "c1", "boardId": "b1", "listId": "l1", "title": "One"},
            {"id": "c2", "boardId": "b1", "extra": "ignored"},
        ]
        environ = {"PER_CARD_TOKENS": "1000", "CARDS_JSON": json.dumps(cards)}

        settings = ConfigurationLoader(environ=environ).token_run_settings()

        assert settings.per_card_tokens == 1000
        assert [c.id for c in settings.cards] == ["c1", "c2"]
        assert settings.cards[0].board_id == "b1"
        assert settings.cards[0].list_id == "l1"
        assert settings.cards[1].list_id is None
        assert settings.field_name == "Tokens Consumidos"

    @pytest.mark.parametrize("raw", [None, "", "0", "-50", "abc"])
    def test_non_positive_delta_is_zero(self, raw) -> None:
        environ = {"CARDS_JSON": "not even json"}
        if raw is not None:
            environ["PER_CARD_TOKENS"] = raw

        settings = ConfigurationLoader(environ=environ).token_run_settings()

        assert settings.per_card_tokens == 0
        assert settings.cards == []

    def test_delta_leading_integer(self) -> None:
        settings = ConfigurationLoader(
            environ={"PER_CARD_TOKENS": "1500.9"}
        ).token_run_settings()

        assert settings.per_card_tokens == 1500

    def test_missing_cards_is_empty_batch(self) -> None:
        settings = ConfigurationLoader(
            environ={"PER_CARD_TOKENS": "10"}
        ).token_run_settings()

        assert settings.cards == []

    @pytest.mark.parametrize("raw", ["[not json", '{"id": "c1", "boardId": "b1"}'])
    def test_malformed_batch(self, raw) -> None:
        environ = {"PER_CARD_TOKENS": "10", "CARDS_JSON": raw}

        with pytest.raises(ConfigurationValidationError):
            ConfigurationLoader(environ=environ).token_run_settings()

    @pytest.mark.parametrize(
        "entry",
        [
            {"boardId": "b1"},
            {"id": "c1"},
            {"id": "", "boardId": "b1"},
            "c1",
        ],
    )
    def test_malformed_entry_is_rejected(self, entry) -> None:
        environ = {"PER_CARD_TOKENS": "10", "CARDS_JSON": json.dumps([entry])}

        settings = ConfigurationLoader(environ=environ).token_run_settings()

        assert settings.cards == []
        assert settings.rejected_cards == 1

    def test_null_title_is_empty(self) -> None:
        raw = '[{"id":"c1","boardId":"b1","title":null},{"id":"c2","boardId":"b1","title":"ok"}]'
        environ = {"PER_CARD_TOKENS": "10", "CARDS_JSON": raw}

        settings = ConfigurationLoader(environ=environ).token_run_settings()

        assert [(c.id, c.title) for c in settings.cards] == [("c1", ""), ("c2", "ok")]
        assert settings.rejected_cards == 0

    def test_valid_entries_survive_a_bad_one(self, caplog) -> None:
        cards = [{"boardId": "b1"}, {"id": "c2", "boardId": "b1"}]
        environ = {"PER_CARD_TOKENS": "10", "CARDS_JSON": json.dumps(cards)}

        settings = ConfigurationLoader(environ=environ).token_run_settings()

        assert [c.id for c in settings.cards] == ["c2"]
        assert settings.rejected_cards == 1
        assert "Skipping CARDS_JSON entry 0" in caplog.text


class TestCardQuery:
    """Test ConfigurationLoader.card_query."""

    def test_ids(self) -> None:
        loader = ConfigurationLoader(environ={"BOARD_ID": "b1", "CARD_ID": "c1"})

        assert loader.card_query() == ("b1", "c1")

    def test_missing_card(self) -> None:
        with pytest.raises(ConfigurationMissingError) as exc_info:
            ConfigurationLoader(environ={"BOARD_ID": "b1"}).card_query()

        assert exc_info.value.missing_fields == ["CARD_ID"]
