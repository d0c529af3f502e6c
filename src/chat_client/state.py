"""
Session State Machine

Transport-independent state for one connection manager: the connection
state and the reconnection policy. Every transition is a method that
validates the current state, updates it, and returns the new state.

    IDLE -> CONNECTING -> OPEN -> RECONNECT_WAIT -> CONNECTING ...
                                                 -> FAILED
    any  -> CLOSING -> IDLE   (manual close)
"""

from dataclasses import dataclass, field
from enum import Enum

from .config import DEFAULT_MAX_RECONNECT_ATTEMPTS, DEFAULT_RECONNECT_DELAY_MS
from .exceptions import StateTransitionError

# Close code reserved for caller-initiated closes ("normal closure")
MANUAL_CLOSE_CODE = 1000

# Close code reported when the connection dropped without a close frame
ABNORMAL_CLOSE_CODE = 1006


class ConnectionState(Enum):
    """States of a connection manager."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECT_WAIT = "reconnect_wait"
    CLOSING = "closing"
    FAILED = "failed"


@dataclass
class ReconnectPolicy:
    """
    Bounded retries with a fixed delay.

    Attributes:
        max_attempts: Reconnect attempts allowed before giving up
        delay: Seconds to wait before each attempt
        attempt: Attempts made since the last successful open
    """

    max_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS
    delay: float = DEFAULT_RECONNECT_DELAY_MS / 1000.0
    attempt: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def reset(self) -> None:
        self.attempt = 0

    def advance(self) -> int:
        """Count one more attempt and return the new attempt number."""
        self.attempt += 1
        return self.attempt

    def exhaust(self) -> None:
        """Mark the policy as used up so nothing reconnects automatically."""
        self.attempt = self.max_attempts


@dataclass
class SessionState:
    """
    Current state plus reconnection policy for one manager instance.

    Attributes:
        policy: Reconnection policy, reset on every successful open
        state: Current connection state
    """

    policy: ReconnectPolicy = field(default_factory=ReconnectPolicy)
    state: ConnectionState = ConnectionState.IDLE

    @property
    def can_open(self) -> bool:
        """True if open() should start a new connect attempt."""
        return self.state in (
            ConnectionState.IDLE,
            ConnectionState.RECONNECT_WAIT,
        )

    def begin_connect(self) -> ConnectionState:
        """
        Caller asked to open: IDLE or RECONNECT_WAIT -> CONNECTING.

        Opening from IDLE starts a fresh retry budget; opening while waiting
        to reconnect keeps counting.
        """
        self._require(ConnectionState.IDLE, ConnectionState.RECONNECT_WAIT)
        if self.state is ConnectionState.IDLE:
            self.policy.reset()
        return self._move(ConnectionState.CONNECTING)

    def retry(self) -> ConnectionState:
        """Reconnect timer fired: RECONNECT_WAIT -> CONNECTING."""
        self._require(ConnectionState.RECONNECT_WAIT)
        return self._move(ConnectionState.CONNECTING)

    def connected(self) -> ConnectionState:
        """Handshake succeeded: CONNECTING -> OPEN, attempts reset."""
        self._require(ConnectionState.CONNECTING)
        self.policy.reset()
        return self._move(ConnectionState.OPEN)

    def connection_lost(self, code: int) -> ConnectionState:
        """
        Transport closed or the handshake failed.

        A close with the manual-close code lands in IDLE. Anything else
        consumes one attempt and waits to reconnect, or fails once the
        policy is exhausted.

        Args:
            code: WebSocket close code (ABNORMAL_CLOSE_CODE for errors)
        """
        self._require(ConnectionState.CONNECTING, ConnectionState.OPEN)
        if code == MANUAL_CLOSE_CODE:
            return self._move(ConnectionState.IDLE)
        if self.policy.exhausted:
            return self._move(ConnectionState.FAILED)
        self.policy.advance()
        return self._move(ConnectionState.RECONNECT_WAIT)

    def begin_close(self) -> ConnectionState:
        """Caller asked to close: any state -> CLOSING, policy exhausted."""
        self.policy.exhaust()
        return self._move(ConnectionState.CLOSING)

    def closed(self) -> ConnectionState:
        """Manual close finished: CLOSING -> IDLE."""
        self._require(ConnectionState.CLOSING)
        return self._move(ConnectionState.IDLE)

    def _require(self, *allowed: ConnectionState) -> None:
        if self.state not in allowed:
            names = ", ".join(s.name for s in allowed)
            raise StateTransitionError(
                f"Illegal transition from {self.state.name} "
                f"(expected one of: {names})"
            )

    def _move(self, new_state: ConnectionState) -> ConnectionState:
        self.state = new_state
        return new_state
