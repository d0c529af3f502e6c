"""
Control Frame Definitions

Keepalive frames exchanged with the server. They are answered or dropped
by the connection manager and never reach the application.
"""

from dataclasses import dataclass

from .base import BaseOutbound

PING_TYPE = "ping"
PONG_TYPE = "pong"
CONTROL_TYPES = (PING_TYPE, PONG_TYPE)


@dataclass(frozen=True)
class ControlFrame(BaseOutbound):
    """
    A ping or pong keepalive frame.

    Attributes:
        kind: "ping" or "pong"
    """

    kind: str

    def __post_init__(self):
        if self.kind not in CONTROL_TYPES:
            raise ValueError(f"Unknown control frame kind: {self.kind!r}")

    @property
    def is_ping(self) -> bool:
        return self.kind == PING_TYPE

    def to_dict(self):
        return {"type": self.kind}


PING = ControlFrame(PING_TYPE)
PONG = ControlFrame(PONG_TYPE)
