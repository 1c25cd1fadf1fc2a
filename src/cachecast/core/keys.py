from __future__ import annotations

from typing import Final

DEFAULT_MAX_KEY_LENGTH: Final[int] = 512


class InvalidKey(ValueError):
    pass


def validate_key(key: str, max_length: int = DEFAULT_MAX_KEY_LENGTH) -> str:
    """Check that a cache key is usable and return it unchanged."""
    if not isinstance(key, str):
        raise InvalidKey("key must be a string")
    if not key or not key.strip():
        raise InvalidKey("empty key")
    if len(key) > max_length:
        raise InvalidKey(f"key longer than {max_length} characters")
    return key
