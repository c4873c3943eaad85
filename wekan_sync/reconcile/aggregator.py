"""Merge state of the pull requests linked from one card."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..github.oracle import (
    OracleAuthenticationError,
    OracleQueryError,
    PullRequestStateOracle,
)
from .references import parse_pr_reference

logger = logging.getLogger(__name__)


class PullRequestState(str, Enum):
    """Resolved state of one pull request reference."""

    MERGED = "MERGED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    INVALID_URL = "INVALID_URL"
    ERROR = "ERROR"


ORACLE_STATES = {
    PullRequestState.MERGED.value: PullRequestState.MERGED,
    PullRequestState.OPEN.value: PullRequestState.OPEN,
    PullRequestState.CLOSED.value: PullRequestState.CLOSED,
}


@dataclass(frozen=True)
class ReferenceState:
    """One reference with its resolved state."""

    url: str
    state: PullRequestState


@dataclass(frozen=True)
class AggregateState:
    """Merge decision across all references of a card.

    ``all_merged`` is False for an empty reference list: no reference means
    no evidence of a merge.
    """

    references: tuple[ReferenceState, ...] = field(default_factory=tuple)

    @property
    def all_merged(self) -> bool:
        return bool(self.references) and all(
            ref.state is PullRequestState.MERGED for ref in self.references
        )

    @property
    def pending(self) -> list[ReferenceState]:
        """References that are not merged yet, in extraction order."""
        return [ref for ref in self.references if ref.state is not PullRequestState.MERGED]

    @property
    def merged_count(self) -> int:
        return len(self.references) - len(self.pending)


class PullRequestStateAggregator:
    """Queries the oracle per reference and reduces the results."""

    def __init__(self, oracle: PullRequestStateOracle) -> None:
        self.oracle = oracle

    async def check_one(self, url: str) -> PullRequestState:
        """Resolve a single reference.

        Malformed references are rejected without a query, and query
        failures map to ERROR so one bad reference never aborts the batch.
        """
        reference = parse_pr_reference(url)
        if reference is None:
            return PullRequestState.INVALID_URL

        try:
            raw_state = await self.oracle.get_state(url)
        except OracleAuthenticationError:
            raise
        except OracleQueryError as e:
            logger.warning(f"State query failed for {reference.slug}: {e}")
            return PullRequestState.ERROR

        state = ORACLE_STATES.get(raw_state.strip().upper())
        if state is None:
            logger.warning(f"Unexpected state {raw_state!r} for {reference.slug}")
            return PullRequestState.ERROR
        return state

    async def check_all(self, urls: Sequence[str]) -> AggregateState:
        """Resolve every reference, one at a time, in order."""
        results = []
        for url in urls:
            results.append(ReferenceState(url=url, state=await self.check_one(url)))
        return AggregateState(references=tuple(results))
