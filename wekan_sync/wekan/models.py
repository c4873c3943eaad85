"""Typed views over Wekan API payloads.

The API returns loosely shaped JSON documents keyed by Mongo-style ``_id``
fields. These dataclasses keep only what the reconciliation runs read and
tolerate missing keys, so a partially populated document still loads.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Board:
    """A Wekan board."""

    id: str
    title: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Board":
        return cls(id=data["_id"], title=data.get("title") or "")


@dataclass(frozen=True)
class BoardList:
    """A list (column) inside a board."""

    id: str
    title: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BoardList":
        return cls(id=data["_id"], title=data.get("title") or "")

    def title_contains(self, *keywords: str) -> bool:
        """Check that the title contains every keyword, ignoring case."""
        lowered = self.title.lower()
        return all(keyword.lower() in lowered for keyword in keywords)


@dataclass(frozen=True)
class Swimlane:
    """A swimlane inside a board."""

    id: str
    title: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Swimlane":
        return cls(id=data["_id"], title=data.get("title") or "")


@dataclass(frozen=True)
class CustomFieldDefinition:
    """Board-scoped custom field definition."""

    id: str
    name: str
    type: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CustomFieldDefinition":
        return cls(
            id=data.get("_id") or "",
            name=data.get("name") or "",
            type=data.get("type") or "",
        )


@dataclass(frozen=True)
class CustomFieldValue:
    """A ``(field id, raw value)`` pair stored on a card.

    The value is untyped: Wekan stores whatever the client sent.
    """

    field_id: str
    value: Any = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CustomFieldValue":
        return cls(field_id=data.get("_id") or "", value=data.get("value"))

    def to_api(self) -> dict[str, Any]:
        return {"_id": self.field_id, "value": self.value}


@dataclass(frozen=True)
class Card:
    """A card as returned by the card endpoints.

    ``list_id`` is only a snapshot: another agent may move the card at any
    time, so callers that need its current list should locate it again.
    """

    id: str
    title: str
    description: str = ""
    list_id: str | None = None
    swimlane_id: str | None = None
    assignees: tuple[str, ...] = ()
    custom_fields: tuple[CustomFieldValue, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Card":
        custom_fields = data.get("customFields") or []
        return cls(
            id=data["_id"],
            title=data.get("title") or "",
            description=data.get("description") or "",
            list_id=data.get("listId"),
            swimlane_id=data.get("swimlaneId"),
            assignees=tuple(data.get("assignees") or ()),
            custom_fields=tuple(
                CustomFieldValue.from_api(cf)
                for cf in custom_fields
                if isinstance(cf, dict)
            ),
        )

    def is_assigned_to(self, user_id: str) -> bool:
        """Check whether the user is among the card's assignees."""
        return user_id in self.assignees


@dataclass(frozen=True)
class Comment:
    """A card comment.

    Comments carry ``authorId``, ``userId`` or both. ``author_id`` prefers
    ``authorId`` and names the author shown next to the text; ``user_id``
    prefers ``userId`` and is what ownership counts compare against.
    """

    id: str
    author_id: str
    text: str
    created_at: str | None = None
    user_id: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Comment":
        author_id = data.get("authorId") or ""
        user_id = data.get("userId") or ""
        return cls(
            id=data.get("_id") or "",
            author_id=author_id or user_id,
            text=data.get("text") or data.get("comment") or "",
            created_at=data.get("createdAt"),
            user_id=user_id or author_id,
        )


@dataclass(frozen=True)
class CardComment:
    """A comment with its author resolved to a display name."""

    id: str
    author: str
    text: str


@dataclass
class DetailedCard:
    """A card together with its board/list context and named custom fields."""

    id: str
    title: str
    description: str
    board: Board
    list: BoardList
    assignees: list[str]
    custom_fields: dict[str, Any]
    swimlane: Swimlane | None = None
    comments: list[CardComment] | None = None

    def to_metadata(self) -> dict[str, Any]:
        """Compact descriptor consumed by the token-accumulation run."""
        return {
            "id": self.id,
            "boardId": self.board.id,
            "listId": self.list.id,
            "title": self.title,
        }


@dataclass(frozen=True)
class FieldUpdateResult:
    """Outcome of a custom field update."""

    success: bool
    message: str
