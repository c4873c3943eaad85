"""GitHub pull request state lookups."""

from .oracle import (
    GhCliStateOracle,
    OracleAuthenticationError,
    OracleError,
    OracleQueryError,
    PullRequestStateOracle,
)

__all__ = [
    "GhCliStateOracle",
    "OracleAuthenticationError",
    "OracleError",
    "OracleQueryError",
    "PullRequestStateOracle",
]
