"""Read-only board queries used to prepare and inspect runs."""

import logging
from dataclasses import dataclass
from typing import Any

from ..wekan.client import WekanClient
from ..wekan.exceptions import WekanAuthenticationError, WekanError
from ..wekan.models import Board, BoardList, Card, CardComment, DetailedCard
from .fields import field_value_by_name, map_fields_by_name
from .locator import locate_card

logger = logging.getLogger(__name__)

PENDING_LIST_PREFIX = "backlog"
PENDING_LIST_TITLE = "em desenvolvimento"
UUID_FIELD = "uuid"


def is_pending_list(board_list: BoardList) -> bool:
    """Backlog lists (any title starting with "backlog") and the development list."""
    title = board_list.title.lower()
    return title.startswith(PENDING_LIST_PREFIX) or title == PENDING_LIST_TITLE


async def _comments_for(
    client: WekanClient, board_id: str, card_id: str
) -> list[CardComment]:
    try:
        comments = await client.get_card_comments(board_id, card_id)
    except WekanAuthenticationError:
        raise
    except WekanError as e:
        logger.warning(f"Failed to load comments of card {card_id}: {e}")
        return []

    # The API lists comments newest first.
    return [
        CardComment(
            id=comment.id,
            author=await client.users.display_name(comment.author_id),
            text=comment.text,
        )
        for comment in reversed(comments)
    ]


async def pending_cards(
    client: WekanClient,
    user_id: str,
    board_name: str | None = None,
    include_comments: bool = False,
) -> list[DetailedCard]:
    """Cards assigned to the user in backlog or in-development lists.

    Args:
        client: Wekan client
        user_id: Acting user
        board_name: Only boards whose title contains this text, ignoring case
        include_comments: Attach comments with author display names

    Returns:
        Cards in board, list and card order
    """
    boards = await client.list_boards(user_id)
    if board_name:
        wanted = board_name.lower()
        boards = [b for b in boards if wanted in b.title.lower()]

    results: list[DetailedCard] = []
    for board in boards:
        metadata = await client.get_board_metadata(board.id)
        swimlanes = {s.id: s for s in metadata.swimlanes}

        for board_list in filter(is_pending_list, metadata.lists):
            for summary in await client.list_cards(board.id, board_list.id):
                if not summary.is_assigned_to(user_id):
                    continue

                card = await client.get_card(board.id, board_list.id, summary.id)
                detailed = _detailed(card, board, board_list, metadata.custom_fields)
                detailed.swimlane = swimlanes.get(card.swimlane_id or "")
                if include_comments:
                    detailed.comments = await _comments_for(client, board.id, card.id)
                results.append(detailed)

    logger.debug(f"Found {len(results)} pending cards for {user_id}")
    return results


def _detailed(
    card: Card, board: Board, board_list: BoardList, definitions: Any
) -> DetailedCard:
    return DetailedCard(
        id=card.id,
        title=card.title,
        description=card.description,
        board=board,
        list=board_list,
        assignees=list(card.assignees),
        custom_fields=map_fields_by_name(card.custom_fields, definitions),
    )


@dataclass(frozen=True)
class CardInfo:
    """Derived metadata of a single card."""

    uuid: str
    user_comment_count: int
    list_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "userCommentCount": self.user_comment_count,
            "listId": self.list_id,
        }


async def card_info(
    client: WekanClient, board_id: str, card_id: str, user_id: str
) -> CardInfo:
    """Locate a card and report its uuid field, the user's comment count and its list.

    A card that cannot be located yields empty values rather than an error.
    """
    located = await locate_card(client, board_id, card_id)
    if located is None:
        logger.info(f"Card {card_id} not found on board {board_id}")
        return CardInfo(uuid="", user_comment_count=0, list_id="")

    definitions = await client.get_custom_fields(board_id)
    uuid_value = field_value_by_name(
        located.card.custom_fields, definitions, UUID_FIELD, default=""
    )

    comments = await client.get_card_comments(board_id, card_id)
    own_comments = sum(1 for comment in comments if comment.user_id == user_id)

    return CardInfo(
        uuid=str(uuid_value or ""),
        user_comment_count=own_comments,
        list_id=located.list_id,
    )
