"""
Connection Manager for the Chat Session

This module provides the ConnectionManager class that owns the WebSocket
session to one chat room. It opens the session, answers keepalive pings,
forwards chat messages to the caller's callbacks, and reconnects after
abnormal closes using a fixed-delay, bounded-retry policy.

Architecture:
    - Runs on a single asyncio event loop; no locks
    - One session task per connect attempt (handshake, then read loop)
    - Reconnect delay is a cancellable loop.call_later timer
    - Supports dependency injection for the network layer (for testability)

Usage:
    callbacks = DispatchCallbacks(on_message=print)
    manager = ConnectionManager(ConnectionConfig("7", token, callbacks))
    manager.open()
    await manager.send("hello")
    manager.close()
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from .config import ClientSettings, build_websocket_url
from .exceptions import (
    ChatClientError,
    ConfigurationError,
    ProtocolError,
    ReconnectExhaustedError,
)
from .protocol import decode_frame, encode_content
from .schemas import PONG, ChatMessage, ControlFrame
from .state import (
    ABNORMAL_CLOSE_CODE,
    MANUAL_CLOSE_CODE,
    ConnectionState,
    ReconnectPolicy,
    SessionState,
)

logger = logging.getLogger(__name__)

# Errors that mean the transport is gone or could not be reached
TRANSPORT_ERRORS = (OSError, WebSocketException, asyncio.TimeoutError)


@dataclass(frozen=True)
class DispatchCallbacks:
    """
    Callbacks through which the manager reports session events.

    All callbacks run on the event loop, one at a time, in event order.
    Exceptions they raise are logged and do not affect the session.

    Attributes:
        on_message: Called with each ChatMessage received
        on_connect: Called after every successful handshake
        on_disconnect: Called when an open or connecting session is lost,
            and when the caller closes an open session
        on_error: Called once with ReconnectExhaustedError when the
            session gives up
    """

    on_message: Callable[[ChatMessage], None]
    on_connect: Optional[Callable[[], None]] = None
    on_disconnect: Optional[Callable[[], None]] = None
    on_error: Optional[Callable[[ChatClientError], None]] = None


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Target of one connection manager. Build a new manager to change it.

    Attributes:
        room_id: Room to join
        token: Auth token for the session
        callbacks: Dispatch callbacks for session events
    """

    room_id: str
    token: str
    callbacks: DispatchCallbacks

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If room_id or token is empty
        """
        if not self.room_id or not self.token:
            raise ConfigurationError("Missing roomId or token")


class ConnectionManager:
    """
    Owns exactly one WebSocket session to a chat room at a time.

    Attributes:
        config: Room, token and callbacks for this manager
        settings: Client settings (API base, reconnect policy, timeouts)
        protocol_errors: Number of inbound frames dropped as malformed
    """

    def __init__(
        self,
        config: ConnectionConfig,
        settings: Optional[ClientSettings] = None,
        websocket_factory: Optional[Callable] = None,
    ):
        """
        Initialize the connection manager.

        Args:
            config: Room, token and callbacks
            settings: Client settings, defaults to ClientSettings()
            websocket_factory: Optional coroutine function taking a URL and
                returning a connected WebSocket (for dependency
                injection/testing)
        """
        self.config = config
        self.settings = settings or ClientSettings()
        self._websocket_factory = websocket_factory or functools.partial(
            connect, open_timeout=self.settings.open_timeout
        )
        self._session = SessionState(
            policy=ReconnectPolicy(
                max_attempts=self.settings.max_reconnect_attempts,
                delay=self.settings.reconnect_delay,
            )
        )
        self._websocket: Optional[Any] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._session_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._error: Optional[ChatClientError] = None
        self.protocol_errors = 0

    @property
    def state(self) -> ConnectionState:
        return self._session.state

    @property
    def attempt(self) -> int:
        """Reconnect attempts made since the last successful open."""
        return self._session.policy.attempt

    @property
    def is_connected(self) -> bool:
        return (
            self._session.state is ConnectionState.OPEN
            and self._websocket is not None
        )

    @property
    def error(self) -> Optional[ChatClientError]:
        """Last user-visible error, cleared on a successful open."""
        return self._error

    @property
    def url(self) -> str:
        """WebSocket URL of the session, derived from the API base."""
        return build_websocket_url(
            self.settings.api_base, self.config.room_id, self.config.token
        )

    def open(self) -> None:
        """
        Start connecting, unless a session is already open or connecting.

        Must be called with an asyncio event loop running. Calling it while
        waiting to reconnect connects immediately.

        Raises:
            ConfigurationError: If room_id or token is missing, or the API
                base URL cannot be turned into a WebSocket URL
        """
        state = self._session.state
        if not self._session.can_open:
            if state is ConnectionState.FAILED:
                logger.warning(
                    "Session for room %s has failed; build a new manager",
                    self.config.room_id,
                )
            else:
                logger.debug("Session already %s, skipping open", state.value)
            return

        try:
            self.config.validate()
            url = self.url
        except ConfigurationError as e:
            logger.error("Cannot open session: %s", e)
            self._error = e
            raise

        loop = asyncio.get_running_loop()
        self._cancel_reconnect()
        self._session.begin_connect()
        self._start_session(loop, url)

    async def send(self, content: str) -> bool:
        """
        Send chat content on the open session.

        Nothing is buffered or retried.

        Args:
            content: The message content

        Returns:
            True once the frame was handed to the transport, False if no
            session is open or the write failed
        """
        websocket = self._websocket
        if (
            websocket is None
            or self._session.state is not ConnectionState.OPEN
        ):
            logger.warning(
                "Cannot send message, session is %s",
                self._session.state.value,
            )
            return False

        try:
            await websocket.send(encode_content(content))
        except (TypeError, ValueError) + TRANSPORT_ERRORS as e:
            logger.warning("Failed to send message: %s", e)
            return False

        logger.debug("Message sent to room %s", self.config.room_id)
        return True

    def close(self) -> None:
        """
        Close the session and stop all automatic reconnection.

        Safe to call in any state, repeatedly, and from inside a callback.
        The transport is closed with the manual-close code in the
        background; use disconnect() to wait for it.
        """
        previous = self._session.state
        self._session.begin_close()
        self._cancel_reconnect()

        task, self._session_task = self._session_task, None
        if (
            task is not None
            and previous is ConnectionState.CONNECTING
            and task is not asyncio.current_task()
        ):
            task.cancel()

        websocket, self._websocket = self._websocket, None
        if websocket is not None:
            self._track(
                asyncio.get_running_loop().create_task(
                    self._close_transport(websocket)
                )
            )

        self._session.closed()
        if previous is not ConnectionState.IDLE:
            logger.info("Session for room %s closed", self.config.room_id)
        if previous is ConnectionState.OPEN:
            self._dispatch("on_disconnect")

    async def disconnect(self) -> None:
        """Close the session and wait for the transport to shut down."""
        self.close()
        skip = (asyncio.current_task(), self._session_task)
        pending = [task for task in self._tasks if task not in skip]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _start_session(
        self, loop: asyncio.AbstractEventLoop, url: str
    ) -> None:
        self._session_task = loop.create_task(self._run_session(url))
        self._track(self._session_task)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_session(self, url: str) -> None:
        room_id = self.config.room_id
        logger.info(
            "Connecting to room %s (attempt %d/%d)",
            room_id,
            self.attempt,
            self._session.policy.max_attempts,
        )

        try:
            websocket = await self._websocket_factory(url)
        except TRANSPORT_ERRORS as e:
            logger.warning("Connection to room %s failed: %s", room_id, e)
            if self._session_task is asyncio.current_task():
                self._connection_lost(ABNORMAL_CLOSE_CODE)
            return

        if (
            self._session_task is not asyncio.current_task()
            or self._session.state is not ConnectionState.CONNECTING
        ):
            # Superseded while the handshake was in flight
            await self._close_transport(websocket)
            return

        self._websocket = websocket
        self._session.connected()
        self._error = None
        logger.info("Connected to room %s", room_id)
        self._dispatch("on_connect")

        crashed = False
        try:
            while self._websocket is websocket:
                try:
                    raw = await websocket.recv()
                except WebSocketException:
                    break
                await self._handle_frame(websocket, raw)
        except OSError as e:
            logger.warning("Transport error in room %s: %s", room_id, e)
        except Exception:
            logger.exception("Session for room %s failed", room_id)
            crashed = True

        if self._websocket is not websocket:
            # Closed by the caller, or replaced by a newer session
            return

        if crashed:
            code = ABNORMAL_CLOSE_CODE
        else:
            code = websocket.close_code or ABNORMAL_CLOSE_CODE
        logger.info("Connection to room %s closed with code %s", room_id, code)
        self._connection_lost(code)
        if crashed:
            await self._close_transport(websocket)

    async def _handle_frame(self, websocket: Any, raw: Any) -> None:
        try:
            frame = decode_frame(raw)
        except ProtocolError as e:
            self.protocol_errors += 1
            logger.warning(
                "Dropping frame from room %s: %s", self.config.room_id, e
            )
            return

        if isinstance(frame, ControlFrame):
            if (
                frame.is_ping
                and self.is_connected
                and websocket is self._websocket
            ):
                try:
                    await websocket.send(PONG.to_json())
                except TRANSPORT_ERRORS as e:
                    logger.warning("Failed to answer ping: %s", e)
            return

        logger.debug(
            "Message from %s in room %s", frame.username, frame.room_id
        )
        self._dispatch("on_message", frame)

    def _connection_lost(self, code: int) -> None:
        self._websocket = None
        self._session_task = None
        self._cancel_reconnect()

        policy = self._session.policy
        new_state = self._session.connection_lost(code)
        error = None
        if new_state is ConnectionState.RECONNECT_WAIT:
            logger.info(
                "Scheduling reconnection attempt %d/%d in %.1fs",
                policy.attempt,
                policy.max_attempts,
                policy.delay,
            )
            self._reconnect_handle = asyncio.get_running_loop().call_later(
                policy.delay, self._reconnect
            )
        elif new_state is ConnectionState.FAILED:
            error = ReconnectExhaustedError(policy.max_attempts)
            self._error = error
            logger.error(
                "Giving up on room %s: %s", self.config.room_id, error
            )

        self._dispatch("on_disconnect")
        if error is not None:
            self._dispatch("on_error", error)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._session.state is not ConnectionState.RECONNECT_WAIT:
            return
        self._session.retry()
        self._start_session(asyncio.get_running_loop(), self.url)

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    async def _close_transport(self, websocket: Any) -> None:
        try:
            await websocket.close(MANUAL_CLOSE_CODE, "Client closed")
        except TRANSPORT_ERRORS as e:
            logger.debug("Error while closing transport: %s", e)

    def _dispatch(self, name: str, *args: Any) -> None:
        callback = getattr(self.config.callbacks, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("%s callback raised", name)
