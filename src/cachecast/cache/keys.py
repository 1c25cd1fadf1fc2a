"""Cache key schema for Cachecast.

Key format: {prefix}:{cache_name}:{key}

Where:
- prefix: "cachecast" (namespace for shared Redis deployments)
- cache_name: logical cache namespace, "my-cache-data" by default
- key: the caller's key, stored verbatim
"""

from __future__ import annotations


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "cachecast"

    @classmethod
    def entry(cls, cache_name: str, key: str) -> str:
        """Key for a cached value."""
        return f"{cls.PREFIX}:{cache_name}:{key}"

    @classmethod
    def parse_key(cls, redis_key: str) -> dict[str, str] | None:
        """Parse a cache key into its components.

        The caller's key may itself contain colons, so only the first two
        separators are significant. Returns None if the key doesn't match the
        expected format.
        """
        parts = redis_key.split(":", 2)
        if len(parts) < 3 or parts[0] != cls.PREFIX or not parts[2]:
            return None

        return {
            "prefix": parts[0],
            "cache_name": parts[1],
            "key": parts[2],
        }

    @classmethod
    def namespace_pattern(cls, cache_name: str) -> str:
        """Pattern matching every entry of a cache.

        Use with Redis SCAN + DEL for bulk clears.
        """
        return f"{cls.PREFIX}:{cache_name}:*"
