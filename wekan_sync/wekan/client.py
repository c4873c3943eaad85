"""Async Wekan REST API client."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import aiohttp

from ..reconcile.fields import resolve_field
from .auth import AuthProvider, PasswordLoginAuth, StaticTokenAuth
from .exceptions import (
    WekanAuthenticationError,
    WekanConnectionError,
    WekanError,
    WekanNotFoundError,
    WekanServerError,
    WekanTimeoutError,
)
from .models import (
    Board,
    BoardList,
    Card,
    Comment,
    CustomFieldDefinition,
    CustomFieldValue,
    FieldUpdateResult,
    Swimlane,
)
from .users import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class WekanClientConfig:
    """Configuration for Wekan client."""

    base_url: str
    timeout: int = 30
    user_agent: str = "wekan-sync/0.3"
    max_concurrent_requests: int = 10
    user_cache_size: int = 1000


@dataclass
class BoardMetadata:
    """Lists, swimlanes and custom field definitions of one board."""

    lists: list[BoardList]
    swimlanes: list[Swimlane]
    custom_fields: list[CustomFieldDefinition]


class WekanClient:
    """Async client for the subset of the Wekan API the runs rely on.

    Requests are not retried: a failed call surfaces as a ``WekanError`` and
    the caller decides whether to skip the unit of work.
    """

    def __init__(self, auth: AuthProvider, config: WekanClientConfig) -> None:
        """Initialize Wekan client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config
        self.config.base_url = self.config.base_url.rstrip("/")
        self.users = UserDirectory(self, max_size=config.user_cache_size)

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(config.max_concurrent_requests)

    @classmethod
    def from_settings(cls, settings: Any) -> "WekanClient":
        """Build a client from ``WekanSettings``."""
        auth: AuthProvider
        if settings.api_token:
            auth = StaticTokenAuth(settings.api_token)
        else:
            auth = PasswordLoginAuth(
                settings.base_url,
                settings.username,
                settings.password,
                timeout=settings.timeout,
            )
        return cls(
            auth=auth,
            config=WekanClientConfig(
                base_url=settings.base_url, timeout=settings.timeout
            ),
        )

    async def __aenter__(self) -> "WekanClient":
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    self._session = aiohttp.ClientSession(
                        timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                        headers={
                            "User-Agent": self.config.user_agent,
                            "Accept": "application/json",
                        },
                    )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        data: Any = None,
    ) -> Any:
        """Send one request and decode its JSON body.

        Args:
            method: HTTP method
            path: API path starting with ``/``
            data: JSON request body

        Returns:
            Decoded JSON, or ``None`` for an empty body

        Raises:
            WekanError: Various Wekan API errors
        """
        correlation_id = str(uuid.uuid4())[:8]
        url = f"{self.config.base_url}{path}"

        auth_token = await self.auth.get_token()
        headers = auth_token.to_header()

        await self._ensure_session()
        if not self._session:
            raise WekanConnectionError("Failed to initialize HTTP session")

        request_kwargs: dict[str, Any] = {"headers": headers}
        if data is not None:
            request_kwargs["json"] = data

        try:
            async with self._request_semaphore:
                start_time = time.time()
                logger.debug(f"Wekan API request [{correlation_id}] {method} {path}")

                async with self._session.request(method, url, **request_kwargs) as response:
                    logger.debug(
                        f"Wekan API response [{correlation_id}] "
                        f"{response.status} in {time.time() - start_time:.2f}s"
                    )
                    if response.status >= 400:
                        await self._handle_error_response(
                            response, method, path, correlation_id
                        )
                    return await response.json(content_type=None)

        except TimeoutError as e:
            raise WekanTimeoutError(f"Request timeout for {method} {path}") from e
        except aiohttp.ClientError as e:
            raise WekanConnectionError(
                f"Connection error for {method} {path}: {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise WekanError(f"Invalid JSON from {method} {path}: {e}") from e

    async def _handle_error_response(
        self,
        response: aiohttp.ClientResponse,
        method: str,
        path: str,
        correlation_id: str,
    ) -> None:
        """Raise the exception matching an error status.

        Raises:
            WekanError: Appropriate error based on status code
        """
        try:
            error_data = await response.json(content_type=None)
        except (json.JSONDecodeError, aiohttp.ContentTypeError):
            error_data = {"message": await response.text()}

        detail = ""
        if isinstance(error_data, dict):
            detail = error_data.get("reason") or error_data.get("message") or ""
        message = f"{method} {path} -> {response.status}"
        if detail:
            message = f"{message}: {detail}"

        logger.warning(f"Wekan API error [{correlation_id}] {message}")

        if response.status in (401, 403):
            raise WekanAuthenticationError(message, response.status, error_data)
        elif response.status == 404:
            raise WekanNotFoundError(message, response.status, error_data)
        elif 500 <= response.status < 600:
            raise WekanServerError(message, response.status, error_data)
        else:
            raise WekanError(message, response.status, error_data)

    async def get(self, path: str) -> Any:
        """Make GET request to Wekan API."""
        return await self._request("GET", path)

    async def post(self, path: str, data: dict[str, Any] | None = None) -> Any:
        """Make POST request to Wekan API."""
        return await self._request("POST", path, data or {})

    async def put(self, path: str, data: dict[str, Any] | None = None) -> Any:
        """Make PUT request to Wekan API."""
        return await self._request("PUT", path, data or {})

    @staticmethod
    def _as_list(payload: Any) -> list[dict[str, Any]]:
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    # Board API surface

    async def list_boards(self, user_id: str) -> list[Board]:
        """List boards the user can access.

        Args:
            user_id: Wekan user id

        Returns:
            Boards in API order
        """
        if not user_id:
            raise ValueError("user_id is required to list boards")
        payload = await self.get(f"/api/users/{user_id}/boards")
        return [Board.from_api(b) for b in self._as_list(payload) if b.get("_id")]

    async def get_board(self, board_id: str) -> Board:
        payload = await self.get(f"/api/boards/{board_id}")
        if not isinstance(payload, dict) or not payload.get("_id"):
            raise WekanNotFoundError(f"Board not found: {board_id}")
        return Board.from_api(payload)

    async def list_lists(self, board_id: str) -> list[BoardList]:
        payload = await self.get(f"/api/boards/{board_id}/lists")
        return [BoardList.from_api(item) for item in self._as_list(payload)]

    async def list_swimlanes(self, board_id: str) -> list[Swimlane]:
        payload = await self.get(f"/api/boards/{board_id}/swimlanes")
        return [Swimlane.from_api(item) for item in self._as_list(payload)]

    async def list_cards(self, board_id: str, list_id: str) -> list[Card]:
        """List cards of one list in summary form."""
        payload = await self.get(f"/api/boards/{board_id}/lists/{list_id}/cards")
        return [Card.from_api(item) for item in self._as_list(payload) if item.get("_id")]

    async def get_card(self, board_id: str, list_id: str, card_id: str) -> Card:
        """Fetch a card in full form.

        Wekan answers an empty document when the card is not in the given
        list; that case is reported as ``WekanNotFoundError`` like a 404.
        """
        payload = await self.get(
            f"/api/boards/{board_id}/lists/{list_id}/cards/{card_id}"
        )
        if not isinstance(payload, dict) or not payload.get("_id"):
            raise WekanNotFoundError(
                f"Card {card_id} not found in list {list_id} of board {board_id}"
            )
        return Card.from_api(payload)

    async def get_custom_fields(self, board_id: str) -> list[CustomFieldDefinition]:
        payload = await self.get(f"/api/boards/{board_id}/custom-fields")
        return [CustomFieldDefinition.from_api(item) for item in self._as_list(payload)]

    async def get_card_comments(self, board_id: str, card_id: str) -> list[Comment]:
        """List card comments, newest first as returned by the API."""
        payload = await self.get(f"/api/boards/{board_id}/cards/{card_id}/comments")
        return [Comment.from_api(item) for item in self._as_list(payload)]

    async def list_users(self) -> list[dict[str, Any]]:
        return self._as_list(await self.get("/api/users"))

    async def get_user(self, user_id: str) -> dict[str, Any]:
        payload = await self.get(f"/api/users/{user_id}")
        if not isinstance(payload, dict):
            raise WekanNotFoundError(f"User not found: {user_id}")
        return payload

    async def get_board_metadata(self, board_id: str) -> BoardMetadata:
        """Fetch lists, swimlanes and custom fields of a board concurrently."""
        lists, swimlanes, custom_fields = await asyncio.gather(
            self.list_lists(board_id),
            self.list_swimlanes(board_id),
            self.get_custom_fields(board_id),
        )
        return BoardMetadata(
            lists=lists, swimlanes=swimlanes, custom_fields=custom_fields
        )

    # Mutations

    async def move_card(
        self,
        board_id: str,
        from_list_id: str,
        card_id: str,
        list_id: str,
        swimlane_id: str | None = None,
    ) -> Card:
        """Move a card to another list (and optionally swimlane)."""
        body: dict[str, Any] = {"listId": list_id}
        if swimlane_id:
            body["swimlaneId"] = swimlane_id

        payload = await self.put(
            f"/api/boards/{board_id}/lists/{from_list_id}/cards/{card_id}", body
        )
        if isinstance(payload, dict) and payload.get("_id"):
            return Card.from_api({"listId": list_id, **payload})
        return Card(id=card_id, title="", list_id=list_id)

    async def update_card_field(
        self,
        board_id: str,
        list_id: str,
        card_id: str,
        field_name: str,
        value: Any,
    ) -> FieldUpdateResult:
        """Set a custom field on a card, resolving the field by name.

        The whole ``customFields`` array is written back: the matching entry
        is replaced, or appended when the card has no value for it yet.

        Args:
            board_id: Board id
            list_id: List the card currently lives in
            card_id: Card id
            field_name: Custom field name, matched case-insensitively
            value: New raw value

        Returns:
            Update outcome; an unknown field name is reported, not raised
        """
        card = await self.get_card(board_id, list_id, card_id)
        definitions = await self.get_custom_fields(board_id)

        definition = resolve_field(definitions, field_name)
        if definition is None:
            available = ", ".join(d.name for d in definitions)
            return FieldUpdateResult(
                success=False,
                message=f"Custom field not found: {field_name}. Available fields: {available}",
            )

        updated: list[CustomFieldValue] = []
        found = False
        for current in card.custom_fields:
            if current.field_id == definition.id:
                updated.append(CustomFieldValue(field_id=current.field_id, value=value))
                found = True
            else:
                updated.append(current)
        if not found:
            updated.append(CustomFieldValue(field_id=definition.id, value=value))

        await self.put(
            f"/api/boards/{board_id}/lists/{list_id}/cards/{card_id}",
            {"customFields": [cf.to_api() for cf in updated]},
        )

        return FieldUpdateResult(
            success=True, message=f'Field "{field_name}" updated successfully'
        )
