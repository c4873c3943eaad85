"""Inputs and results of the reconciliation runs.

Results are plain dataclasses returned by each run; counters live on the
result object of the run that produced them and nowhere else.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CardDescriptor(BaseModel):
    """A card to process, as produced by the pending-cards query."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1)
    board_id: str = Field(alias="boardId", min_length=1)
    list_id: str | None = Field(default=None, alias="listId")
    title: str = ""

    @field_validator("title", mode="before")
    @classmethod
    def blank_title(cls, v: Any) -> Any:
        """A null title reads as empty."""
        return "" if v is None else v


class CardStatus(str, Enum):
    """Terminal state of one card in a merge-check run."""

    TRANSITIONED = "transitioned"
    MERGED_NOT_MOVED = "merged_not_moved"
    RETAINED = "retained"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CardOutcome:
    """What happened to one card and why."""

    card_id: str
    title: str
    board_id: str
    status: CardStatus
    detail: str = ""


@dataclass
class MergeCheckResult:
    """Counters and per-card outcomes of a merge-check run."""

    boards_scanned: int = 0
    boards_skipped: int = 0
    total_cards: int = 0
    merged_cards: int = 0
    moved_cards: int = 0
    skipped_cards: int = 0
    outcomes: list[CardOutcome] = field(default_factory=list)

    def record(self, outcome: CardOutcome) -> None:
        """Count a card by its terminal status."""
        self.outcomes.append(outcome)
        if outcome.status is CardStatus.TRANSITIONED:
            self.merged_cards += 1
            self.moved_cards += 1
        elif outcome.status is CardStatus.MERGED_NOT_MOVED:
            self.merged_cards += 1
        else:
            self.skipped_cards += 1

    def summary_lines(self) -> list[str]:
        return [
            f"Boards scanned: {self.boards_scanned} (skipped: {self.boards_skipped})",
            f"Cards in source lists: {self.total_cards}",
            f"Cards with all PRs merged: {self.merged_cards}",
            f"Cards moved: {self.moved_cards}",
            f"Cards skipped: {self.skipped_cards}",
        ]


@dataclass(frozen=True)
class TokenUpdate:
    """One accumulated token total."""

    card_id: str
    title: str
    previous: int
    added: int
    new_value: int


@dataclass
class TokenRunResult:
    """Counters and per-card updates of a token-accumulation run."""

    total_cards: int = 0
    updated_cards: int = 0
    skipped_cards: int = 0
    failed_cards: int = 0
    updates: list[TokenUpdate] = field(default_factory=list)

    def summary_lines(self) -> list[str]:
        return [
            f"Cards in batch: {self.total_cards}",
            f"Cards updated: {self.updated_cards}",
            f"Cards skipped: {self.skipped_cards}",
            f"Cards failed: {self.failed_cards}",
        ]
