"""
User Schema Definitions

User records and the login/register result returned by the REST API.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .base import BaseInbound


@dataclass(frozen=True)
class User(BaseInbound):
    """
    A registered user.

    Attributes:
        id: Unique identifier for the user
        username: The user's name
        created_at: ISO 8601 timestamp when the account was created
    """

    id: int
    username: str
    created_at: str

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "User":
        """Create from response data dictionary."""
        return cls(
            id=data["id"],
            username=data["username"],
            created_at=data["created_at"],
        )


@dataclass(frozen=True)
class AuthResult(BaseInbound):
    """
    Result of a successful login or registration.

    Attributes:
        token: Auth token for REST calls and the chat session
        user: The authenticated user
    """

    token: str
    user: User

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "AuthResult":
        """Create from response data dictionary."""
        return cls(token=data["token"], user=User.from_dict(data["user"]))
