"""
Schemas Package

This package contains the wire frame schemas for the chat session and the
record schemas returned by the REST API.

The package provides base classes (BaseOutbound, BaseInbound) that
eliminate code duplication for serialization and deserialization methods.
"""

from .base import BaseInbound, BaseOutbound
from .control import PING, PONG, ControlFrame
from .message import ChatMessage, HistoryMessage, SendMessageRequest
from .room import Room
from .user import AuthResult, User

__all__ = [
    # Base classes
    "BaseInbound",
    "BaseOutbound",
    # Session frames
    "ChatMessage",
    "ControlFrame",
    "PING",
    "PONG",
    "SendMessageRequest",
    # REST records
    "AuthResult",
    "HistoryMessage",
    "Room",
    "User",
]
