"""Invalidation message schema.

A message carries nothing but the key to evict. On the wire it is the UTF-8
encoded key, so any client that can publish a string to the channel can
trigger an eviction.
"""

from __future__ import annotations

from dataclasses import dataclass


class InvalidMessage(ValueError):
    pass


@dataclass(frozen=True)
class InvalidationMessage:
    """Cache invalidation message."""

    key: str

    def to_bytes(self) -> bytes:
        """Serialize to the wire format."""
        return self.key.encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes | str) -> "InvalidationMessage":
        """Deserialize from the wire format."""
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidMessage("invalidation payload is not UTF-8") from exc
        if not data:
            raise InvalidMessage("invalidation payload is empty")
        return cls(key=data)
