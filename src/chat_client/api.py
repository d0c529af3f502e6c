"""
REST API Client for the Chat Server

This module provides the ApiClient class for the request/response calls
made alongside the chat session: authentication, room management and
message history.

Architecture:
    - httpx.AsyncClient for non-blocking HTTP
    - Supports dependency injection of the HTTP client (for testability)
    - Every response is unwrapped from the {"success", "data"} envelope

Usage:
    async with ApiClient("http://localhost:8081") as api:
        auth = await api.login("ann", "secret")
        rooms = await api.list_rooms(auth.token)
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_HTTP_TIMEOUT
from .exceptions import ApiError
from .schemas import AuthResult, HistoryMessage, Room

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class ApiClient:
    """
    Client for the chat server's REST API.

    Attributes:
        base_url: Base URL of the API (e.g., http://localhost:8081)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the API
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx.AsyncClient (for
                dependency injection/testing); its base_url is ignored
        """
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def login(self, username: str, password: str) -> AuthResult:
        """
        Log in with username and password.

        Returns:
            AuthResult with the session token and user

        Raises:
            ApiError: If the credentials are rejected or the call fails
        """
        data = await self._request(
            "POST",
            "/api/login",
            json={"username": username, "password": password},
        )
        return self._parse(AuthResult, data)

    async def register(self, username: str, password: str) -> AuthResult:
        """
        Create an account and log in.

        Raises:
            ApiError: If registration is rejected or the call fails
        """
        data = await self._request(
            "POST",
            "/api/register",
            json={"username": username, "password": password},
        )
        return self._parse(AuthResult, data)

    async def list_rooms(self, token: str) -> List[Room]:
        """List all chat rooms."""
        data = await self._request("GET", "/api/rooms", token=token)
        return [self._parse(Room, room) for room in data or []]

    async def create_room(self, name: str, token: str) -> Room:
        """
        Create a chat room.

        Args:
            name: Name of the room to create
            token: Auth token

        Returns:
            The created Room
        """
        data = await self._request(
            "POST", "/api/rooms/create", json={"name": name}, token=token
        )
        return self._parse(Room, data)

    async def delete_room(self, room_id: int, token: str) -> str:
        """
        Delete a chat room.

        Returns:
            Confirmation message from the server
        """
        data = await self._request(
            "DELETE",
            "/api/rooms/delete",
            params={"id": room_id},
            token=token,
        )
        if isinstance(data, dict):
            return data.get("message", "")
        return ""

    async def fetch_message_history(
        self,
        room_id: str,
        token: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> List[HistoryMessage]:
        """
        Fetch the most recent messages of a room.

        Args:
            room_id: Room to read
            token: Auth token
            limit: Maximum number of messages to return

        Returns:
            List of HistoryMessage in server order
        """
        data = await self._request(
            "GET",
            "/api/messages",
            params={"roomId": room_id, "limit": limit},
            token=token,
        )
        return [self._parse(HistoryMessage, msg) for msg in data or []]

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        url = self.base_url + path
        headers: Dict[str, str] = {}
        if token:
            headers["Authorization"] = token

        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(
                method, url, headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiError(f"Request to {path} failed: {e}")

        if not response.is_success:
            raise self._error_from(response)

        try:
            body = response.json()
        except ValueError:
            raise ApiError(
                f"Invalid JSON in response from {path}", response.status_code
            )
        if not isinstance(body, dict):
            raise ApiError(
                f"Unexpected response from {path}", response.status_code
            )
        return body.get("data")

    @staticmethod
    def _error_from(response: httpx.Response) -> ApiError:
        status = response.status_code
        message = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")

        logger.error("HTTP %d from %s: %s", status, response.url, message)
        return ApiError(message or f"HTTP error! status: {status}", status)

    @staticmethod
    def _parse(schema, data):
        try:
            return schema.from_dict(data)
        except (KeyError, TypeError) as e:
            raise ApiError(f"Malformed {schema.__name__} in response: {e}")
