"""Pydantic settings models for the reconciliation jobs.

This module defines the settings every run needs, split by concern:
- WekanSettings: how to reach and authenticate against the board API
- MergeCheckSettings: list/field naming used by the merge-check run
- TokenRunSettings: the token-accumulation batch and its per-card delta

Values reach these models already resolved: references such as
${VAR_NAME} in the YAML file are substituted by the loader.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..reconcile.models import CardDescriptor


class BaseSettingsModel(BaseModel):
    """Base settings model; unknown keys are rejected."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")


class WekanSettings(BaseSettingsModel):
    """Connection and identity settings for the Wekan board API."""

    base_url: str = Field(description="Wekan base URL, without the /api suffix")

    api_token: str | None = Field(default=None, description="Wekan API token")

    username: str | None = Field(
        default=None, description="Login name, used when no API token is set"
    )

    password: str | None = Field(
        default=None, description="Login password, used when no API token is set"
    )

    user_id: str = Field(description="Id of the acting Wekan user")

    timeout: int = Field(
        default=30, ge=1, le=600, description="HTTP request timeout in seconds"
    )

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        """Strip surrounding whitespace and a single trailing slash."""
        v = v.strip()
        if v.endswith("/"):
            v = v[:-1]
        if not v:
            raise ValueError("base_url must not be empty")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("user_id must not be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_credentials(self) -> "WekanSettings":
        """Require an API token or a complete username/password pair."""
        if not self.api_token and not (self.username and self.password):
            raise ValueError(
                "Either api_token or both username and password must be set"
            )
        return self

    @property
    def uses_login(self) -> bool:
        """Whether authentication goes through the /users/login endpoint."""
        return not self.api_token


class MergeCheckSettings(BaseSettingsModel):
    """Naming rules used by the merge-check run."""

    source_list_keyword: str = Field(
        default="merge",
        description="Substring identifying the list whose cards are checked",
    )

    target_list_keywords: list[str] = Field(
        default_factory=lambda: ["pendente", "teste"],
        min_length=1,
        description="Substrings that must all appear in the destination list title",
    )

    pr_field_name: str = Field(
        default="PR", description="Custom field holding pull request URLs"
    )

    gh_binary: str = Field(default="gh", description="GitHub CLI executable")

    oracle_timeout: int = Field(
        default=60, ge=1, le=600, description="Timeout for one gh query in seconds"
    )


class TokenRunSettings(BaseSettingsModel):
    """A token-accumulation batch."""

    field_name: str = Field(
        default="Tokens Consumidos",
        description="Text custom field that stores the accumulated total",
    )

    per_card_tokens: int = Field(
        default=0, description="Tokens added to every card of the batch"
    )

    cards: list[CardDescriptor] = Field(default_factory=list)

    rejected_cards: int = Field(
        default=0, ge=0, description="Batch entries dropped as malformed"
    )
