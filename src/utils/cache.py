"""Caching utilities for the feedback API."""

from cachetools import TTLCache

# Module-level cache, shared by every request the process serves
STATS_CACHE_TTL_SECONDS = 60  # Stats fan out into several count queries
STATS_CACHE_KEY = "feedback-stats"
_stats_cache: TTLCache = TTLCache(maxsize=1, ttl=STATS_CACHE_TTL_SECONDS)


def get_stats_cache() -> TTLCache:
    """Get the stats cache for direct access."""
    return _stats_cache


def invalidate_stats() -> None:
    """Drop the cached stats snapshot after a write."""
    _stats_cache.pop(STATS_CACHE_KEY, None)


def clear_all_caches() -> None:
    """Clear all caches. Useful for testing."""
    _stats_cache.clear()


# Cache-Control header values
CACHE_CONTROL_PUBLIC = "public, max-age=60"  # Public listings and stats
CACHE_CONTROL_PRIVATE = "private, no-cache"  # Admin and per-record responses
