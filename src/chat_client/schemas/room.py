"""
Room Schema Definitions

Room records returned by the REST API.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .base import BaseInbound


@dataclass(frozen=True)
class Room(BaseInbound):
    """
    A chat room.

    Attributes:
        id: Unique identifier for the room
        name: Name of the room
        created_at: ISO 8601 timestamp when the room was created
    """

    id: int
    name: str
    created_at: str

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "Room":
        """Create from response data dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=data["created_at"],
        )
