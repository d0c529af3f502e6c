"""
Session Wire Protocol

Encoding of outgoing chat content and decoding of inbound frames.

Frame Format:
    Every frame is a flat JSON object classified by its "type" key:
    {"type": "message", "room_id": 7, "sender_id": 3, "username": "ann",
     "content": "hi", "ts": 1700000000000}
    {"type": "ping"}
    {"type": "pong"}

    Outgoing chat content carries no type:
    {"content": "hi"}
"""

import json
from typing import Union

from .exceptions import ProtocolError
from .schemas import ChatMessage, ControlFrame, SendMessageRequest
from .schemas.control import CONTROL_TYPES
from .schemas.message import MESSAGE_TYPE

Frame = Union[ChatMessage, ControlFrame]


def encode_content(content: str) -> str:
    """Wrap user content as an outgoing send frame."""
    return SendMessageRequest(content).to_json()


def decode_frame(raw: Union[str, bytes]) -> Frame:
    """
    Parse and classify one inbound frame.

    Args:
        raw: Frame payload as received from the WebSocket

    Returns:
        ChatMessage for "message" frames, ControlFrame for ping/pong

    Raises:
        ProtocolError: If the frame is not a JSON object, has a missing or
            unknown type, or a message frame is missing fields
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise ProtocolError(f"Frame is not valid JSON: {e}", raw)

    if not isinstance(data, dict):
        raise ProtocolError(
            f"Frame must be a JSON object, got {type(data).__name__}", raw
        )

    frame_type = data.get("type")
    if frame_type == MESSAGE_TYPE:
        return ChatMessage.from_dict(data)
    if frame_type in CONTROL_TYPES:
        return ControlFrame(frame_type)

    raise ProtocolError(f"Unrecognized frame type: {frame_type!r}", raw)
