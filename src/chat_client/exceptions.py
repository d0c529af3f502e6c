"""
Client Exceptions

Error taxonomy for the chat client. Configuration and protocol errors are
also ValueErrors, and reconnect exhaustion is also a ConnectionError, so
callers catching the built-in types keep working.
"""

from typing import Optional


class ChatClientError(Exception):
    """Base class for all chat client errors."""


class ConfigurationError(ChatClientError, ValueError):
    """Raised when the client is missing a room id, token or usable URL."""


class ProtocolError(ChatClientError, ValueError):
    """
    Raised by the codec for a malformed or unrecognized inbound frame.

    Attributes:
        raw: The frame that could not be decoded
    """

    def __init__(self, message: str, raw: object = None):
        super().__init__(message)
        self.raw = raw


class ReconnectExhaustedError(ChatClientError, ConnectionError):
    """
    Raised when the reconnection policy has run out of attempts.

    The session cannot recover on its own; the caller has to build a new
    connection manager.
    """

    def __init__(self, attempts: int):
        super().__init__(
            f"Max reconnection attempts reached ({attempts}). "
            "Please reload the session."
        )
        self.attempts = attempts


class ApiError(ChatClientError):
    """
    Raised when a REST API call fails.

    Attributes:
        message: Human-readable message from the server
        status_code: HTTP status of the failed response, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StateTransitionError(ChatClientError, RuntimeError):
    """Raised when the session state machine is asked for an illegal move."""
