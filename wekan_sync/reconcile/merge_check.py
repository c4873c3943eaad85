"""Merge-check run: move cards whose pull requests are all merged.

For every accessible board the run looks for a source list (title contains
"merge") and a destination list (title contains both "pendente" and
"teste"). Each card of the source list, as listed at the start of the
board, goes through these gates:

1. the card can still be located on the board
2. the acting user is one of its assignees
3. its PR field is filled
4. the PR field holds at least one pull request URL

Cards that pass are moved to the destination list when every linked pull
request is merged, and left in place otherwise.
"""

import logging
from collections.abc import Sequence

from ..github.oracle import OracleAuthenticationError
from ..wekan.client import BoardMetadata, WekanClient
from ..wekan.exceptions import WekanAuthenticationError, WekanError
from ..wekan.models import Board, BoardList, Card
from .aggregator import PullRequestStateAggregator
from .fields import field_value_by_name
from .locator import locate_card, prioritize_list
from .models import CardOutcome, CardStatus, MergeCheckResult
from .references import extract_pr_urls

logger = logging.getLogger(__name__)


def find_list(lists: Sequence[BoardList], *keywords: str) -> BoardList | None:
    """Return the first list whose title contains every keyword."""
    for board_list in lists:
        if board_list.title_contains(*keywords):
            return board_list
    return None


class MergeCheckRunner:
    """Moves merged cards from the merge list to the testing list."""

    def __init__(
        self,
        client: WekanClient,
        aggregator: PullRequestStateAggregator,
        user_id: str,
        source_list_keyword: str = "merge",
        target_list_keywords: Sequence[str] = ("pendente", "teste"),
        pr_field_name: str = "PR",
    ) -> None:
        """Initialize the run.

        Args:
            client: Wekan client
            aggregator: Pull request state aggregator
            user_id: Acting user; only cards assigned to it are handled
            source_list_keyword: Substring identifying the source list
            target_list_keywords: Substrings that must all be in the target list title
            pr_field_name: Custom field holding the pull request URLs
        """
        self.client = client
        self.aggregator = aggregator
        self.user_id = user_id
        self.source_list_keyword = source_list_keyword
        self.target_list_keywords = tuple(target_list_keywords)
        self.pr_field_name = pr_field_name

    async def run(self) -> MergeCheckResult:
        """Process every accessible board, one after the other."""
        result = MergeCheckResult()

        boards = await self.client.list_boards(self.user_id)
        if not boards:
            logger.info("No boards found")
            return result

        for board in boards:
            await self._process_board(board, result)

        return result

    async def _process_board(self, board: Board, result: MergeCheckResult) -> None:
        logger.info(f"Processing board {board.title} ({board.id})")

        try:
            metadata = await self.client.get_board_metadata(board.id)
        except WekanAuthenticationError:
            raise
        except WekanError as e:
            logger.error(f"Failed to read board {board.title} ({board.id}): {e}")
            result.boards_skipped += 1
            return

        source = find_list(metadata.lists, self.source_list_keyword)
        target = find_list(metadata.lists, *self.target_list_keywords)
        if source is None or target is None:
            missing = "source" if source is None else "destination"
            logger.info(f"Board {board.title} has no {missing} list, skipping")
            result.boards_skipped += 1
            return

        result.boards_scanned += 1
        logger.info(f"  Source list {source.title} ({source.id}), destination {target.title} ({target.id})")

        try:
            cards = await self.client.list_cards(board.id, source.id)
        except WekanAuthenticationError:
            raise
        except WekanError as e:
            logger.error(f"Failed to list cards of {source.title} on {board.title}: {e}")
            return

        if not cards:
            logger.info(f"  No cards in list {source.title}")
            return

        # The card list is a snapshot: moves made below do not change it.
        for card in cards:
            result.total_cards += 1
            outcome = await self._process_card(board, metadata, source, target, card)
            result.record(outcome)

    async def _process_card(
        self,
        board: Board,
        metadata: BoardMetadata,
        source: BoardList,
        target: BoardList,
        summary: Card,
    ) -> CardOutcome:
        def outcome(status: CardStatus, detail: str) -> CardOutcome:
            return CardOutcome(
                card_id=summary.id,
                title=summary.title,
                board_id=board.id,
                status=status,
                detail=detail,
            )

        label = f"{summary.title} ({summary.id})"
        logger.info(f"  Checking card {label}")

        try:
            located = await locate_card(
                self.client,
                board.id,
                summary.id,
                prioritize_list(metadata.lists, source.id),
            )
            if located is None:
                logger.warning(f"    Card {label} is no longer on board {board.title}, skipping")
                return outcome(CardStatus.SKIPPED, "card not found in any list")

            card = located.card
            if located.list_id == target.id:
                logger.info(f"    Card {label} is already in {target.title}, skipping")
                return outcome(CardStatus.SKIPPED, "already in destination list")

            if not card.is_assigned_to(self.user_id):
                logger.info(f"    Card {label} is not assigned to {self.user_id}, skipping")
                return outcome(CardStatus.SKIPPED, "not assigned to acting user")

            raw_value = field_value_by_name(
                card.custom_fields, metadata.custom_fields, self.pr_field_name
            )
            if raw_value is None or str(raw_value).strip() == "":
                logger.info(f"    Field {self.pr_field_name} is empty on {label}, skipping")
                return outcome(CardStatus.SKIPPED, f"field {self.pr_field_name} is empty")

            urls = extract_pr_urls(str(raw_value))
            if not urls:
                logger.warning(
                    f"    No pull request URL in field {self.pr_field_name} of {label}: {raw_value!r}"
                )
                return outcome(CardStatus.SKIPPED, f"no pull request URL in {raw_value!r}")

            aggregate = await self.aggregator.check_all(urls)
            for ref in aggregate.references:
                logger.info(f"    {ref.url}: {ref.state.value}")

            if not aggregate.all_merged:
                pending = ", ".join(f"{ref.url} ({ref.state.value})" for ref in aggregate.pending)
                total = len(aggregate.references)
                logger.info(
                    f"    Merged {aggregate.merged_count} of {total}, pending: "
                    f"{pending}, keeping card in {source.title}"
                )
                return outcome(
                    CardStatus.RETAINED,
                    f"merged {aggregate.merged_count} of {total}, pending: {pending}",
                )

            logger.info(f"    All {len(urls)} pull request(s) merged, moving to {target.title}")
            try:
                await self.client.move_card(board.id, located.list_id, card.id, target.id)
            except WekanAuthenticationError:
                raise
            except WekanError as e:
                logger.error(f"    Failed to move card {label}: {e}")
                return outcome(CardStatus.MERGED_NOT_MOVED, f"move failed: {e}")

            logger.info(f"    Card {label} moved to {target.title}")
            return outcome(CardStatus.TRANSITIONED, f"moved to {target.title}")

        except (WekanAuthenticationError, OracleAuthenticationError):
            raise
        except WekanError as e:
            logger.error(f"    Failed to check card {label}: {e}")
            return outcome(CardStatus.SKIPPED, f"error: {e}")
