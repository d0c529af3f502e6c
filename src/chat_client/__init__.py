"""
Chat Client Package

This package provides the client side of a realtime chat room: the
ConnectionManager that keeps a WebSocket session to one room alive, the
wire protocol for chat and keepalive frames, and the ApiClient for the
server's REST endpoints.

Schemas are organized in the `schemas` subpackage by category:
    - message: Chat messages and history records
    - control: Keepalive ping/pong frames
    - room, user: REST API records
"""

from .api import ApiClient
from .config import ClientSettings, build_websocket_url
from .connection import ConnectionConfig, ConnectionManager, DispatchCallbacks
from .exceptions import (
    ApiError,
    ChatClientError,
    ConfigurationError,
    ProtocolError,
    ReconnectExhaustedError,
    StateTransitionError,
)
from .protocol import decode_frame, encode_content
from .schemas import (
    AuthResult,
    ChatMessage,
    ControlFrame,
    HistoryMessage,
    Room,
    SendMessageRequest,
    User,
)
from .state import (
    ABNORMAL_CLOSE_CODE,
    MANUAL_CLOSE_CODE,
    ConnectionState,
    ReconnectPolicy,
    SessionState,
)

__all__ = [
    # Session
    "ConnectionManager",
    "ConnectionConfig",
    "DispatchCallbacks",
    "ConnectionState",
    "ReconnectPolicy",
    "SessionState",
    "MANUAL_CLOSE_CODE",
    "ABNORMAL_CLOSE_CODE",
    # Protocol
    "decode_frame",
    "encode_content",
    "ChatMessage",
    "ControlFrame",
    "SendMessageRequest",
    # REST API
    "ApiClient",
    "AuthResult",
    "HistoryMessage",
    "Room",
    "User",
    # Configuration
    "ClientSettings",
    "build_websocket_url",
    # Errors
    "ChatClientError",
    "ConfigurationError",
    "ProtocolError",
    "ReconnectExhaustedError",
    "StateTransitionError",
    "ApiError",
]
