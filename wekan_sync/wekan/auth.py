"""Wekan authentication handlers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import aiohttp

from .exceptions import WekanAuthenticationError, WekanConnectionError

logger = logging.getLogger(__name__)


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"
    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        pass


class StaticTokenAuth(AuthProvider):
    """Pre-issued Wekan API token."""

    def __init__(self, token: str):
        """Initialize token authentication.

        Args:
            token: Wekan API token
        """
        if not token:
            raise WekanAuthenticationError("API token is required")
        self._token = AuthToken(token=token)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        return self._token


class PasswordLoginAuth(AuthProvider):
    """Username/password login against ``/users/login``.

    The token issued by the first successful login is reused for the
    lifetime of the provider.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: int = 30,
    ):
        """Initialize login authentication.

        Args:
            base_url: Wekan base URL
            username: Login name
            password: Login password
            timeout: Login request timeout in seconds
        """
        if not username or not password:
            raise WekanAuthenticationError("Username and password are required")
        self.base_url = base_url.rstrip("/")
        self.username = username
        self._password = password
        self.timeout = timeout
        self._current_token: AuthToken | None = None

    async def get_token(self) -> AuthToken:
        """Get authentication token, logging in on first use."""
        if self._current_token is None:
            self._current_token = await self._login()
        return self._current_token

    async def _login(self) -> AuthToken:
        url = f"{self.base_url}/users/login"
        payload = {"username": self.username, "password": self._password}

        logger.debug(f"Logging in to Wekan as {self.username}")
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(url, json=payload) as response:
                    if response.status >= 400:
                        raise WekanAuthenticationError(
                            f"Login failed -> {response.status}",
                            status_code=response.status,
                        )
                    data: dict[str, Any] = await response.json(content_type=None)
        except TimeoutError as e:
            raise WekanConnectionError(f"Login request to {url} timed out") from e
        except aiohttp.ClientError as e:
            raise WekanConnectionError(f"Login request to {url} failed: {e}") from e

        token = (data or {}).get("token")
        if not token:
            raise WekanAuthenticationError("Login response did not include a token")

        return AuthToken(token=token)
