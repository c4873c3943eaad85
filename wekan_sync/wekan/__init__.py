"""Wekan API client package."""

from .auth import AuthProvider, AuthToken, PasswordLoginAuth, StaticTokenAuth
from .client import BoardMetadata, WekanClient, WekanClientConfig
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
    CardComment,
    Comment,
    CustomFieldDefinition,
    CustomFieldValue,
    DetailedCard,
    FieldUpdateResult,
    Swimlane,
)
from .users import UserDirectory

__all__ = [
    "AuthProvider",
    "AuthToken",
    "Board",
    "BoardList",
    "BoardMetadata",
    "Card",
    "CardComment",
    "Comment",
    "CustomFieldDefinition",
    "CustomFieldValue",
    "DetailedCard",
    "FieldUpdateResult",
    "PasswordLoginAuth",
    "StaticTokenAuth",
    "Swimlane",
    "UserDirectory",
    "WekanAuthenticationError",
    "WekanClient",
    "WekanClientConfig",
    "WekanConnectionError",
    "WekanError",
    "WekanNotFoundError",
    "WekanServerError",
    "WekanTimeoutError",
]
