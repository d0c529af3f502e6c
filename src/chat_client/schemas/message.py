"""
Message Schema Definitions

This module defines the chat message structures: the outgoing send frame,
the "message" frame broadcast by the server, and the stored message records
returned by the history endpoint.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict

from ..exceptions import ProtocolError
from .base import BaseInbound, BaseOutbound

MESSAGE_TYPE = "message"


@dataclass
class SendMessageRequest(BaseOutbound):
    """
    Chat content written by the client.

    The server attaches room, sender and timestamp before broadcasting,
    so the frame carries the content only.

    Attributes:
        content: The message content
    """

    content: str


@dataclass(frozen=True)
class ChatMessage(BaseInbound):
    """
    A chat message broadcast by the server.

    Attributes:
        room_id: ID of the room the message was posted in
        sender_id: ID of the user who sent it
        username: Username of the sender
        content: The message content
        timestamp: Server time of the message, epoch milliseconds
    """

    kind: ClassVar[str] = MESSAGE_TYPE

    room_id: int
    sender_id: int
    username: str
    content: str
    timestamp: int

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "ChatMessage":
        """
        Create from a decoded frame, validating every field.

        Raises:
            ProtocolError: If a field is missing or has the wrong type
        """
        return cls(
            room_id=_require(data, "room_id", int),
            sender_id=_require(data, "sender_id", int),
            username=_require(data, "username", str),
            content=_require(data, "content", str),
            timestamp=_require(data, "ts", int),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the wire shape, keys in wire order."""
        return {
            "type": self.kind,
            "room_id": self.room_id,
            "sender_id": self.sender_id,
            "username": self.username,
            "content": self.content,
            "ts": self.timestamp,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class HistoryMessage(BaseInbound):
    """
    A stored message returned by the message history endpoint.

    Attributes:
        id: Database ID of the message
        room_id: ID of the room
        sender_id: ID of the sender
        username: Username of the sender
        content: The message content
        created_at: ISO 8601 timestamp when the message was stored
    """

    id: int
    room_id: int
    sender_id: int
    username: str
    content: str
    created_at: str

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "HistoryMessage":
        """Create from response data dictionary."""
        return cls(
            id=data["id"],
            room_id=data["room_id"],
            sender_id=data["sender_id"],
            username=data["username"],
            content=data["content"],
            created_at=data["created_at"],
        )

    def to_chat_message(self) -> ChatMessage:
        """
        Convert to the live message shape so history and live messages
        can be handled by the same code.

        Timestamps without an offset are taken as UTC.
        """
        return ChatMessage(
            room_id=self.room_id,
            sender_id=self.sender_id,
            username=self.username,
            content=self.content,
            timestamp=_iso_to_millis(self.created_at),
        )


def _require(data: Dict[str, Any], name: str, expected: type) -> Any:
    if name not in data:
        raise ProtocolError(f"Message frame missing field '{name}'", data)
    value = data[name]
    # bool is a subclass of int but never a valid id or timestamp
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ProtocolError(
            f"Message field '{name}' must be {expected.__name__}, "
            f"got {type(value).__name__}",
            data,
        )
    return value


def _iso_to_millis(value: str) -> int:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)
