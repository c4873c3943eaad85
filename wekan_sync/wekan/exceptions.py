"""Wekan API client exceptions."""

from typing import Any


class WekanError(Exception):
    """Base exception for Wekan API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
    ):
        """Initialize Wekan error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response data from the Wekan API
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data if response_data is not None else {}


class WekanAuthenticationError(WekanError):
    """Raised when login fails or the API rejects the credentials."""

    pass


class WekanNotFoundError(WekanError):
    """Raised when a board, list or card is not found."""

    pass


class WekanServerError(WekanError):
    """Raised when Wekan returns a 5xx error."""

    pass


class WekanConnectionError(WekanError):
    """Raised when the connection to Wekan fails."""

    pass


class WekanTimeoutError(WekanError):
    """Raised when request times out."""

    pass
