"""
Base Schema Classes

This module provides base classes for outgoing and incoming frame schemas
with common serialization and deserialization methods to avoid code
duplication.

Frames on the wire are flat JSON objects; the "type" key, when present,
is the discriminant used to classify them.
"""

import json
from dataclasses import asdict, fields
from typing import Any, Dict, Optional, TypeVar

T = TypeVar("T", bound="BaseInbound")


class BaseOutbound:
    """
    Base class for frames written by the client.

    Provides common serialization methods for converting frame objects
    to dictionary and JSON formats.
    """

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with the 'type' key (if the frame has one) followed
            by the dataclass fields.
        """
        data: Dict[str, Any] = {}
        if self._message_type is not None:
            data["type"] = self._message_type
        if hasattr(self, "__dataclass_fields__") and fields(self):
            data.update(asdict(self))
        return data

    def to_json(self) -> str:
        """
        Convert to JSON string.

        Returns:
            JSON string representation of the frame.
        """
        return json.dumps(self.to_dict())

    @property
    def _message_type(self) -> Optional[str]:
        """
        Discriminant written as the 'type' key.

        Frames that the server identifies by shape alone return None.
        """
        return None


class BaseInbound:
    """
    Base class for frames and records received from the server.

    Provides common deserialization methods for creating objects from
    dictionary and JSON formats.
    """

    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from dictionary.

        Args:
            data: Dictionary containing the frame or record fields.

        Returns:
            Instance of the schema class.
        """
        return cls._from_data(data)

    @classmethod
    def from_json(cls: type[T], json_str: str) -> T:
        """
        Create instance from JSON string.

        Args:
            json_str: JSON string containing the frame.

        Returns:
            Instance of the schema class.
        """
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def _from_data(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from a data dictionary.

        Should be overridden by subclasses for custom deserialization.
        """
        return cls(**data)
