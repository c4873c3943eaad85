"""Locate a card whose list may have changed since it was last seen."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..wekan.client import WekanClient
from ..wekan.exceptions import (
    WekanAuthenticationError,
    WekanError,
    WekanNotFoundError,
)
from ..wekan.models import BoardList, Card

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocatedCard:
    """A card together with the list it was found in."""

    card: Card
    list_id: str


def prioritize_list(lists: Sequence[BoardList], list_id: str | None) -> list[BoardList]:
    """Move the last known list to the front, keeping the rest in order."""
    ordered = list(lists)
    if not list_id:
        return ordered
    first = [lst for lst in ordered if lst.id == list_id]
    return first + [lst for lst in ordered if lst.id != list_id]


async def locate_card(
    client: WekanClient,
    board_id: str,
    card_id: str,
    lists: Sequence[BoardList] | None = None,
) -> LocatedCard | None:
    """Find the list a card currently lives in.

    Lists are tried in the given order (the board's order when omitted) and
    the scan stops at the first list that returns the card. A failed fetch
    from one list only means "not here" and the scan moves on; only
    authentication failures propagate.

    Args:
        client: Wekan client
        board_id: Board to search
        card_id: Card to find
        lists: Lists to scan

    Returns:
        The card and its list, or None when no list has it
    """
    if lists is None:
        lists = await client.list_lists(board_id)

    for board_list in lists:
        try:
            card = await client.get_card(board_id, board_list.id, card_id)
        except WekanAuthenticationError:
            raise
        except WekanNotFoundError:
            continue
        except WekanError as e:
            logger.debug(
                f"Card {card_id} lookup in list {board_list.id} failed: {e}"
            )
            continue

        return LocatedCard(card=card, list_id=board_list.id)

    logger.debug(f"Card {card_id} not found in {len(lists)} lists of board {board_id}")
    return None
