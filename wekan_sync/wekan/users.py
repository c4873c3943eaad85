"""User id to display name mapping owned by a single Wekan client."""

import logging
from collections import OrderedDict
from typing import TYPE_CHECKING, Any

from .exceptions import WekanAuthenticationError, WekanError

if TYPE_CHECKING:
    from .client import WekanClient

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown"


def display_name_from_api(user: dict[str, Any], fallback: str) -> str:
    """Pick ``profile.fullname``, then ``username``, then the fallback."""
    profile = user.get("profile") or {}
    return profile.get("fullname") or user.get("username") or fallback


class UserDirectory:
    """Bounded ``user id -> display name`` cache.

    ``populate()`` loads every user once; later lookups for ids missing from
    that listing fall back to one request per id, and finally to the id
    itself. Oldest entries are evicted past ``max_size``.
    """

    def __init__(self, client: "WekanClient", max_size: int = 1000) -> None:
        self._client = client
        self.max_size = max_size
        self._names: OrderedDict[str, str] = OrderedDict()
        self._populated = False

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._names

    @property
    def populated(self) -> bool:
        return self._populated

    def _store(self, user_id: str, name: str) -> None:
        self._names[user_id] = name
        self._names.move_to_end(user_id)
        while len(self._names) > self.max_size:
            self._names.popitem(last=False)

    async def populate(self) -> None:
        """Load all users into the directory, once."""
        if self._populated:
            return
        self._populated = True

        try:
            users = await self._client.list_users()
        except WekanAuthenticationError:
            raise
        except WekanError as e:
            logger.warning(f"Failed to load users: {e}")
            return

        for user in users:
            user_id = user.get("_id")
            if user_id:
                self._store(user_id, display_name_from_api(user, user_id))

    async def display_name(self, user_id: str) -> str:
        """Resolve a user id to a display name."""
        if not user_id:
            return UNKNOWN_USER

        await self.populate()

        if user_id in self._names:
            return self._names[user_id]

        try:
            user = await self._client.get_user(user_id)
            name = display_name_from_api(user, user_id)
        except WekanAuthenticationError:
            raise
        except WekanError:
            name = user_id

        self._store(user_id, name)
        return name
