"""
Bridge caching package.

A single short-lived in-process cache sits in front of the upstream bridge.
Entries are namespaced per entry point and only successful fetches are
stored; flushing is explicit and privileged.
"""

from .ttl_cache import DEFAULT_TTL_SECONDS, CacheEntry, Namespace, TTLCache, make_key

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "Namespace",
    "TTLCache",
    "make_key",
]
