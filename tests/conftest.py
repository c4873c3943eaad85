"""
Shared fixtures for the reconciliation tests.

Provides factories for Wekan API models and an AsyncMock board client whose
card lookups honor which list a card is actually in.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from wekan_sync.wekan.client import BoardMetadata, WekanClient
from wekan_sync.wekan.exceptions import WekanNotFoundError
from wekan_sync.wekan.models import (
    Board,
    BoardList,
    Card,
    CustomFieldDefinition,
    CustomFieldValue,
    FieldUpdateResult,
)

USER_ID = "user-jarbas"


def build_card(
    card_id: str = "card-1",
    title: str = "Test card",
    assignees: tuple[str, ...] = (USER_ID,),
    fields: dict[str, Any] | None = None,
    list_id: str | None = None,
) -> Card:
    """Build a card whose custom field values are keyed by field id."""
    return Card(
        id=card_id,
        title=title,
        list_id=list_id,
        assignees=assignees,
        custom_fields=tuple(
            CustomFieldValue(field_id=fid, value=value)
            for fid, value in (fields or {}).items()
        ),
    )


@pytest.fixture
def user_id() -> str:
    return USER_ID


@pytest.fixture
def make_card() -> Callable[..., Card]:
    return build_card


@pytest.fixture
def board() -> Board:
    return Board(id="board-1", title="Projeto X")


@pytest.fixture
def board_lists() -> list[BoardList]:
    return [
        BoardList(id="list-backlog", title="Backlog"),
        BoardList(id="list-dev", title="Em Desenvolvimento"),
        BoardList(id="list-merge", title="Merge"),
        BoardList(id="list-test", title="Pendente de Testes"),
    ]


@pytest.fixture
def field_definitions() -> list[CustomFieldDefinition]:
    return [
        CustomFieldDefinition(id="field-pr", name="PR", type="text"),
        CustomFieldDefinition(id="field-uuid", name="uuid", type="text"),
        CustomFieldDefinition(id="field-tokens", name="Tokens Consumidos", type="text"),
    ]


@pytest.fixture
def card_locations() -> dict[str, tuple[str, Card]]:
    """Where each card currently is: ``card id -> (list id, card)``."""
    return {}


@pytest.fixture
def place_card(card_locations) -> Callable[[str, Card], Card]:
    def _place(list_id: str, card: Card) -> Card:
        card_locations[card.id] = (list_id, card)
        return card

    return _place


@pytest.fixture
def mock_client(
    board, board_lists, field_definitions, card_locations
) -> AsyncMock:
    """
    Mock Wekan client backed by ``card_locations``.

    get_card only succeeds for the list a card was placed in, like the real
    API which answers an empty document for any other list.
    """
    client = AsyncMock(spec=WekanClient)

    async def get_card(board_id: str, list_id: str, card_id: str) -> Card:
        location = card_locations.get(card_id)
        if location is None or location[0] != list_id:
            raise WekanNotFoundError(f"Card {card_id} not found in list {list_id}")
        return location[1]

    async def list_cards(board_id: str, list_id: str) -> list[Card]:
        return [card for lid, card in card_locations.values() if lid == list_id]

    client.list_boards.return_value = [board]
    client.list_lists.return_value = board_lists
    client.get_custom_fields.return_value = field_definitions
    client.get_board_metadata.return_value = BoardMetadata(
        lists=board_lists, swimlanes=[], custom_fields=field_definitions
    )
    client.get_card.side_effect = get_card
    client.list_cards.side_effect = list_cards
    client.get_card_comments.return_value = []
    client.update_card_field.return_value = FieldUpdateResult(True, "updated")
    client.users = Mock()
    client.users.display_name = AsyncMock(side_effect=lambda user_id: f"name:{user_id}")
    return client
