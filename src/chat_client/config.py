"""
Client Configuration

Settings for the chat client, read from environment variables with
defaults, and derivation of the WebSocket endpoint from the REST base URL.

Environment:
    CHAT_API_BASE: REST base URL (default http://localhost:8081)
    CHAT_RECONNECT_DELAY_MS: Fixed delay between reconnect attempts
    CHAT_MAX_RECONNECT_ATTEMPTS: Number of automatic reconnect attempts
    CHAT_OPEN_TIMEOUT: WebSocket handshake timeout in seconds
    CHAT_HTTP_TIMEOUT: REST request timeout in seconds
    CHAT_LOG_LEVEL: Log level used by the console entry point
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from .exceptions import ConfigurationError

DEFAULT_API_BASE = "http://localhost:8081"
DEFAULT_RECONNECT_DELAY_MS = 3000
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_OPEN_TIMEOUT = 10.0
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"

WEBSOCKET_PATH = "/ws"

_SCHEME_MAP = {"http": "ws", "https": "wss"}


@dataclass(frozen=True)
class ClientSettings:
    """
    Client-wide settings.

    Attributes:
        api_base: Base URL of the chat server's REST API
        reconnect_delay_ms: Fixed delay before each reconnect attempt
        max_reconnect_attempts: Attempts before the session gives up
        open_timeout: Seconds to wait for the WebSocket handshake
        http_timeout: Seconds to wait for a REST response
        log_level: Log level name for the console entry point
    """

    api_base: str = DEFAULT_API_BASE
    reconnect_delay_ms: int = DEFAULT_RECONNECT_DELAY_MS
    max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS
    open_timeout: float = DEFAULT_OPEN_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def reconnect_delay(self) -> float:
        """Reconnect delay in seconds."""
        return self.reconnect_delay_ms / 1000.0

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "ClientSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        return cls(
            api_base=env.get("CHAT_API_BASE", DEFAULT_API_BASE),
            reconnect_delay_ms=_parse_number(
                env, "CHAT_RECONNECT_DELAY_MS", DEFAULT_RECONNECT_DELAY_MS, int
            ),
            max_reconnect_attempts=_parse_number(
                env,
                "CHAT_MAX_RECONNECT_ATTEMPTS",
                DEFAULT_MAX_RECONNECT_ATTEMPTS,
                int,
            ),
            open_timeout=_parse_number(
                env, "CHAT_OPEN_TIMEOUT", DEFAULT_OPEN_TIMEOUT, float
            ),
            http_timeout=_parse_number(
                env, "CHAT_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float
            ),
            log_level=env.get("CHAT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )


def _parse_number(env, name, default, convert):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = convert(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {raw!r}")
    return value


def build_websocket_url(api_base: str, room_id: str, token: str) -> str:
    """
    Derive the session endpoint from the REST base URL.

    http becomes ws and https becomes wss; the path /ws is appended with
    the room id and token as query parameters.

    Args:
        api_base: REST base URL, e.g. http://localhost:8081
        room_id: Room to join
        token: Auth token for the session

    Returns:
        WebSocket URL, e.g. ws://localhost:8081/ws?roomId=7&token=abc

    Raises:
        ConfigurationError: If the base URL scheme is not http or https
    """
    parts = urlsplit(api_base.strip())
    scheme = _SCHEME_MAP.get(parts.scheme.lower())
    if scheme is None or not parts.netloc:
        raise ConfigurationError(
            f"API base must be an http or https URL, got {api_base!r}"
        )

    path = parts.path.rstrip("/") + WEBSOCKET_PATH
    query = urlencode({"roomId": room_id, "token": token})
    return urlunsplit((scheme, parts.netloc, path, query, ""))
